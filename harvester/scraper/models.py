"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int


@dataclass(frozen=True)
class SitemapEntry:
    """One ``<url>`` record read from a sitemap."""

    url: str
    date_modified: str
    sitemap_url: str


@dataclass(frozen=True)
class ExtractionRequest:
    """Everything :func:`~harvester.scraper.extractor.extract` needs for one page."""

    html: str
    selectors: tuple[str, ...]
    exclusions: tuple[str, ...] = ()
    table_operation: bool = True


@dataclass
class TextUnit:
    """Extracted text for one page, the atom packed into aggregate chunks."""

    source_url: str
    body: str


@dataclass
class QueueItem:
    """A changed page waiting to be crawled, with its extraction rule."""

    url: str
    date_modified: str
    selectors: tuple[str, ...]
    exclusions: tuple[str, ...] = ()
    table_operation: bool = True


@dataclass
class PageResult:
    """Outcome of crawling and scraping one :class:`QueueItem`."""

    url: str
    selectors: tuple[str, ...]
    date_modified: str
    crawled: bool = False
    scraped: bool = False
    stored: bool = False
    text: Optional[str] = None
    error: Optional[str] = None


@dataclass
class RunReport:
    """Counters for one harvesting run."""

    queued: int = 0
    crawled: int = 0
    scraped: int = 0
    stored: int = 0
    parts: list[str] = field(default_factory=list)
