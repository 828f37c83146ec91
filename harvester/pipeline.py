"""Incremental harvesting run.

``run_harvest`` orchestrates one full run:

    sitemaps → changed URLs → ledger update → fetch + extract (parallel)
    → store per-page text → aggregate corpus
"""

from __future__ import annotations

import logging
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

import httpx

from harvester.config import settings
from harvester.corpus.store import read_units, store_unit, write_aggregate
from harvester.db import urls
from harvester.runlog import log_page
from harvester.scraper.extractor import extract
from harvester.scraper.fetcher import fetch_page
from harvester.scraper.models import (
    ExtractionRequest,
    PageResult,
    QueueItem,
    RunReport,
    SitemapEntry,
    TextUnit,
)
from harvester.scraper.sitemap import fetch_sitemaps
from harvester.sources import Source

logger = logging.getLogger(__name__)

SitemapFetcher = Callable[[Iterable[str]], list[SitemapEntry]]


def build_queue(
    conn: sqlite3.Connection,
    sources: Sequence[Source],
    fetch: Optional[SitemapFetcher] = None,
) -> list[QueueItem]:
    """List the new or updated pages of every source, with their rules.

    Sources are visited in configuration order and each source's entries in
    sitemap order; that order is kept all the way to the ledger update.
    """
    fetch = fetch or fetch_sitemaps
    queue: list[QueueItem] = []
    for source in sources:
        before = len(queue)
        entries = fetch(source.sitemap_urls)
        for entry in urls.changed_entries(conn, entries):
            rule = source.rule_for(entry.sitemap_url)
            if rule is None:
                logger.warning("No rule for sitemap %s, skipping %s", entry.sitemap_url, entry.url)
                continue
            queue.append(
                QueueItem(
                    url=entry.url,
                    date_modified=entry.date_modified,
                    selectors=rule.selectors,
                    exclusions=rule.exclusions,
                    table_operation=rule.table_operation,
                )
            )
        logger.info("Source %r: %d changed page(s)", source.name, len(queue) - before)
    return queue


def process_page(item: QueueItem) -> PageResult:
    """Fetch and extract one page.

    Touches neither the ledger nor the filesystem, so it is safe to run in
    worker threads.  Fetch and extraction failures are reported in the
    result rather than raised.
    """
    result = PageResult(url=item.url, selectors=item.selectors, date_modified=item.date_modified)
    try:
        raw = fetch_page(item.url)
    except httpx.HTTPError as exc:
        result.error = str(exc) or type(exc).__name__
        return result

    result.crawled = True
    try:
        result.text = extract(
            ExtractionRequest(
                html=raw.html,
                selectors=item.selectors,
                exclusions=item.exclusions,
                table_operation=item.table_operation,
            )
        )
    except Exception as exc:
        # Counted as a scrape error; the other pages still go through.
        logger.exception("Extraction failed for %s", item.url)
        result.error = str(exc) or type(exc).__name__
        return result
    result.scraped = result.text is not None
    return result


def crawl_and_scrape(
    conn: sqlite3.Connection,
    queue: Sequence[QueueItem],
    text_dir: Path,
    max_workers: Optional[int] = None,
) -> list[PageResult]:
    """Process *queue* in parallel and record every outcome.

    Results are handled in queue order on the calling thread: error counters
    go to the ledger, extracted text goes to ``text_dir``.
    """
    workers = max(1, min(max_workers or settings.max_workers, len(queue) or 1))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(process_page, queue))

    for result in results:
        if not result.crawled:
            urls.add_crawl_error(conn, result.url)
        elif not result.scraped:
            urls.add_scrape_error(conn, result.url)
        else:
            try:
                store_unit(text_dir, TextUnit(source_url=result.url, body=result.text or ""))
                result.stored = True
            except OSError as exc:
                logger.warning("Could not store text for %s: %s", result.url, exc)
        log_page(result)
    return results


def aggregate(
    text_dir: Optional[Path] = None,
    aggregated_file: Optional[Path] = None,
) -> list[Path]:
    """Rebuild the master corpus and its parts from every stored unit."""
    return write_aggregate(
        read_units(text_dir or settings.text_dir),
        aggregated_file or settings.aggregated_file,
        settings.copyright_text,
        settings.aggregated_chunk_size,
    )


def run_harvest(
    conn: sqlite3.Connection,
    sources: Sequence[Source],
    fetch: Optional[SitemapFetcher] = None,
) -> RunReport:
    """Run one incremental harvest over *sources*.

    Args:
        conn: Open, initialised ledger connection.
        sources: Sites to harvest, see :func:`harvester.sources.load_sources`.
        fetch: Sitemap reader; defaults to
            :func:`~harvester.scraper.sitemap.fetch_sitemaps`.

    Returns:
        A :class:`RunReport` with per-stage counters and the part files.
    """
    queue = build_queue(conn, sources, fetch)
    urls.upsert_urls(conn, [(item.url, item.date_modified) for item in queue])

    results = crawl_and_scrape(conn, queue, settings.text_dir)
    parts = aggregate()

    return RunReport(
        queued=len(queue),
        crawled=sum(r.crawled for r in results),
        scraped=sum(r.scraped for r in results),
        stored=sum(r.stored for r in results),
        parts=[str(p) for p in parts],
    )
