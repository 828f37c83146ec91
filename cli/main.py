"""Harvester CLI: entry-point for all operations.

Usage:
    python cli/main.py --help

Commands:
    db init     → create the URL ledger
    run         → full incremental harvest (sitemaps → pages → corpus)
    scrape      → extract one page and print the text
    aggregate   → rebuild the corpus files from stored page text
    urls ...    → inspect and enable/disable ledger URLs
    config ...  → validate the sources file
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from harvester.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any working
# directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import List, Optional

import typer

from cli.commands.config import config_app
from cli.commands.urls import urls_app
from harvester.config import settings
from harvester.db import get_connection, init_db

app = typer.Typer(
    name="harvester",
    help="Incremental sitemap text harvester.",
    no_args_is_help=True,
)
app.add_typer(urls_app, name="urls")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the URL ledger (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


# ---------------------------------------------------------------------------
# Harvest commands
# ---------------------------------------------------------------------------
@app.command("run")
def run(
    sources_file: Optional[Path] = typer.Option(
        None, "--sources", help="Sources JSON file (defaults to HARVESTER_SOURCES)."
    ),
) -> None:
    """Harvest every changed page listed in the configured sitemaps."""
    from harvester.pipeline import run_harvest
    from harvester.runlog import configure_logging
    from harvester.sources import SourcesConfigError, load_sources

    try:
        sources = load_sources(sources_file)
    except SourcesConfigError as exc:
        typer.echo(f"[run] {exc}")
        raise typer.Exit(1)

    settings.ensure_storage()
    configure_logging(settings.log_dir)

    conn = get_connection()
    init_db(conn)
    try:
        report = run_harvest(conn, sources)
    finally:
        conn.close()

    typer.echo(
        f"[run] queued={report.queued}  crawled={report.crawled}  "
        f"scraped={report.scraped}  stored={report.stored}  parts={len(report.parts)}"
    )


@app.command("scrape")
def scrape(
    url: str = typer.Argument(..., help="URL to scrape."),
    selector: List[str] = typer.Option(..., "--selector", "-s", help="Inclusion selector (repeatable)."),
    exclude: List[str] = typer.Option([], "--exclude", "-x", help="Exclusion selector (repeatable)."),
    tables: bool = typer.Option(True, "--tables/--no-tables", help="Flatten tables to key: value lines."),
) -> None:
    """Fetch one URL and print the text extracted with the given selectors."""
    import httpx

    from harvester.scraper import extract_text, fetch_page

    typer.echo(f"[scrape] Fetching {url!r} …")
    try:
        raw = fetch_page(url)
    except httpx.HTTPError as exc:
        typer.echo(f"[scrape] Fetch failed: {exc}")
        raise typer.Exit(1)

    typer.echo(f"[scrape] HTTP {raw.status_code}, extracting content …")
    text = extract_text(raw.html, selector, exclude, tables)
    if text is None:
        typer.echo("[scrape] No text found.")
        raise typer.Exit(1)

    typer.echo(f"[scrape] Words  : {len(text.split())}")
    typer.echo("")
    typer.echo(text)


@app.command("aggregate")
def aggregate_cmd() -> None:
    """Rebuild the aggregated corpus and its parts from stored page text."""
    from harvester.pipeline import aggregate

    parts = aggregate()
    typer.echo(f"[aggregate] Wrote {settings.aggregated_file} and {len(parts)} part(s).")
    for p in parts:
        typer.echo(f"  {p}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
