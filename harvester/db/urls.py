"""Operations on the ``urls`` ledger table."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Iterable, Optional

from harvester.db.models import STATUSES, UrlRecord
from harvester.scraper.models import SitemapEntry

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_record(row: sqlite3.Row) -> UrlRecord:
    return UrlRecord(
        id=row["id"],
        url=row["url"],
        date_modified=row["date_modified"],
        crawl_error=row["crawl_error"],
        scraped_error=row["scraped_error"],
        status=row["status"],
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_all_urls(conn: sqlite3.Connection, status: Optional[str] = None) -> list[UrlRecord]:
    """Return every ledger row, optionally filtered by ``status``."""
    if status:
        rows = conn.execute(
            "SELECT * FROM urls WHERE status = ? ORDER BY id", (status,)
        ).fetchall()
    else:
        rows = conn.execute("SELECT * FROM urls ORDER BY id").fetchall()
    return [_row_to_record(r) for r in rows]


def get_url(conn: sqlite3.Connection, url: str) -> Optional[UrlRecord]:
    """Fetch one ledger row by URL.  Returns ``None`` if not found."""
    row = conn.execute("SELECT * FROM urls WHERE url = ?", (url,)).fetchone()
    return _row_to_record(row) if row else None


def upsert_urls(conn: sqlite3.Connection, entries: Iterable[tuple[str, Optional[str]]]) -> None:
    """Insert new ``(url, date_modified)`` pairs or refresh their date.

    New rows start with zero error counters and ``enabled`` status.  Existing
    rows only get their ``date_modified`` updated.  A missing date is stored
    as the current time.
    """
    with conn:
        for url, date_modified in entries:
            conn.execute(
                """
                INSERT INTO urls (url, date_modified, crawl_error, scraped_error, status)
                VALUES (?, ?, 0, 0, 'enabled')
                ON CONFLICT(url) DO UPDATE SET date_modified = excluded.date_modified
                """,
                (url, date_modified or datetime.now().strftime("%Y-%m-%d %H:%M:%S")),
            )


def add_crawl_error(conn: sqlite3.Connection, url: str) -> None:
    """Increment the ``crawl_error`` counter for *url*."""
    with conn:
        conn.execute(
            "UPDATE urls SET crawl_error = crawl_error + 1 WHERE url = ?", (url,)
        )


def add_scrape_error(conn: sqlite3.Connection, url: str) -> None:
    """Increment the ``scraped_error`` counter for *url*."""
    with conn:
        conn.execute(
            "UPDATE urls SET scraped_error = scraped_error + 1 WHERE url = ?", (url,)
        )


def set_status(conn: sqlite3.Connection, url: str, status: str) -> UrlRecord:
    """Change the status of *url*.

    Raises:
        ValueError: If *status* is unknown or *url* is not in the ledger.
    """
    if status not in STATUSES:
        raise ValueError(f"Unknown status {status!r}; expected one of {STATUSES}")
    if get_url(conn, url) is None:
        raise ValueError(f"URL not found: {url!r}")
    with conn:
        conn.execute("UPDATE urls SET status = ? WHERE url = ?", (status, url))
    return get_url(conn, url)  # type: ignore[return-value]


def changed_entries(
    conn: sqlite3.Connection, entries: Iterable[SitemapEntry]
) -> list[SitemapEntry]:
    """Return the sitemap *entries* that need crawling, in their given order.

    An entry is changed when its URL is not in the ledger yet, or when its
    ``date_modified`` is newer than the stored one.  Both dates use the
    ``YYYY-MM-DD HH:MM:SS`` form, so string comparison orders them.  URLs
    whose status is not ``enabled`` are skipped.
    """
    known = {r.url: r for r in get_all_urls(conn)}
    changed: list[SitemapEntry] = []
    for entry in entries:
        record = known.get(entry.url)
        if record is None:
            changed.append(entry)
        elif record.enabled and entry.date_modified > record.date_modified:
            changed.append(entry)
    return changed
