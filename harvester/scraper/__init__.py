"""Scraper package: sitemap reading, page fetch & text extraction."""

from harvester.scraper.extractor import extract, extract_text, validate_selectors
from harvester.scraper.fetcher import fetch_page
from harvester.scraper.models import ExtractionRequest, RawPage, SitemapEntry, TextUnit
from harvester.scraper.sitemap import fetch_sitemaps
from harvester.scraper.tables import flatten_table

__all__ = [
    "extract",
    "extract_text",
    "validate_selectors",
    "fetch_page",
    "fetch_sitemaps",
    "flatten_table",
    "ExtractionRequest",
    "RawPage",
    "SitemapEntry",
    "TextUnit",
]
