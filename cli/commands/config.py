"""Configuration commands."""

from pathlib import Path

import typer

from harvester.scraper.extractor import validate_selectors
from harvester.sources import SourcesConfigError, load_sources

config_app = typer.Typer(help="Check the sources configuration.", no_args_is_help=True)


@config_app.command("check")
def config_check(
    sources_file: Path = typer.Option(None, "--sources", help="Sources JSON file to check."),
) -> None:
    """Load the sources file and report selectors that do not parse.

    Runs skip such selectors silently, so this is the place to catch typos.
    """
    try:
        sources = load_sources(sources_file)
    except SourcesConfigError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)

    problems = 0
    for source in sources:
        for rule in source.rules:
            errors = validate_selectors([*rule.selectors, *rule.exclusions])
            for selector, message in errors.items():
                problems += 1
                typer.echo(f"❌ [{source.name}] {rule.sitemap_url}: {selector!r}: {message}")

    if problems:
        raise typer.Exit(code=1)
    rules = sum(len(s.rules) for s in sources)
    typer.echo(f"✅ {len(sources)} source(s), {rules} sitemap rule(s), all selectors valid.")
