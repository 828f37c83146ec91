"""Ledger commands: list tracked URLs and switch them on or off."""

import typer

from harvester.db import get_connection, init_db
from harvester.db.urls import get_all_urls, set_status

urls_app = typer.Typer(help="Inspect and manage the URL ledger.", no_args_is_help=True)


@urls_app.command("list")
def urls_list(
    status: str = typer.Option(None, "--status", help="Filter by status (enabled, disabled, auto_disabled)."),
) -> None:
    """List ledger URLs with their dates and error counters."""
    conn = get_connection()
    init_db(conn)
    try:
        records = get_all_urls(conn, status=status)
    finally:
        conn.close()

    if not records:
        typer.echo("No URLs found.")
        return
    for r in records:
        typer.echo(
            f" - [{r.status}] {r.url}  modified={r.date_modified}  "
            f"crawl_errors={r.crawl_error}  scrape_errors={r.scraped_error}"
        )


def _change_status(url: str, status: str) -> None:
    conn = get_connection()
    init_db(conn)
    try:
        record = set_status(conn, url, status)
    except ValueError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()
    typer.echo(f"✅ {record.url} is now {record.status}")


@urls_app.command("disable")
def urls_disable(url: str = typer.Argument(..., help="URL to stop harvesting.")) -> None:
    """Stop harvesting a URL even when its sitemap date changes."""
    _change_status(url, "disabled")


@urls_app.command("enable")
def urls_enable(url: str = typer.Argument(..., help="URL to harvest again.")) -> None:
    """Resume harvesting a previously disabled URL."""
    _change_status(url, "enabled")
