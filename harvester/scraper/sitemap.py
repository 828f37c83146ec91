"""Sitemap reader: lists the pages of a site with their last-modified dates."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Iterable, Optional

import httpx

from harvester.config import settings
from harvester.scraper.fetcher import default_headers
from harvester.scraper.models import SitemapEntry

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _local(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on tag names."""
    return tag.rsplit("}", 1)[-1].lower()


def _child_text(element: ET.Element, name: str) -> str:
    for child in element:
        if _local(child.tag) == name:
            return (child.text or "").strip()
    return ""


def normalize_date(raw: Optional[str]) -> str:
    """Normalise an ISO-8601 ``<lastmod>`` value to ``YYYY-MM-DD HH:MM:SS``.

    The wall-clock time is kept as written (no timezone conversion).  Empty
    or unparseable values fall back to the current time so the page is
    treated as freshly modified.
    """
    raw = (raw or "").strip()
    if raw:
        try:
            return datetime.fromisoformat(raw).strftime(DATE_FORMAT)
        except ValueError:
            logger.debug("Unparseable lastmod %r, using current time", raw)
    return datetime.now().strftime(DATE_FORMAT)


def parse_sitemap(xml: bytes | str, sitemap_url: str) -> list[SitemapEntry]:
    """Parse a ``<urlset>`` document into :class:`SitemapEntry` records.

    Raises:
        xml.etree.ElementTree.ParseError: If *xml* is not well-formed.
    """
    root = ET.fromstring(xml)
    entries: list[SitemapEntry] = []
    for url_el in root.iter():
        if _local(url_el.tag) != "url":
            continue
        loc = _child_text(url_el, "loc")
        if not loc:
            continue
        entries.append(
            SitemapEntry(
                url=loc,
                date_modified=normalize_date(_child_text(url_el, "lastmod")),
                sitemap_url=sitemap_url,
            )
        )
    return entries


def fetch_sitemap(sitemap_url: str, client: httpx.Client) -> list[SitemapEntry]:
    """Download and parse one sitemap.  Failures are logged and yield ``[]``."""
    try:
        response = client.get(sitemap_url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Skipping unreachable sitemap %s: %s", sitemap_url, exc)
        return []

    try:
        return parse_sitemap(response.content, sitemap_url)
    except ET.ParseError as exc:
        logger.warning("Skipping invalid sitemap %s: %s", sitemap_url, exc)
        return []


def fetch_sitemaps(sitemap_urls: Iterable[str]) -> list[SitemapEntry]:
    """Fetch every sitemap in order and concatenate their entries."""
    results: list[SitemapEntry] = []
    with httpx.Client(
        headers=default_headers(),
        timeout=settings.request_timeout,
        follow_redirects=True,
    ) as client:
        for sitemap_url in sitemap_urls:
            entries = fetch_sitemap(sitemap_url, client)
            logger.info("Sitemap %s listed %d URL(s)", sitemap_url, len(entries))
            results.extend(entries)
    return results
