"""Tests for page fetching and sitemap reading.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made.
- ``time.sleep`` is patched to avoid real delays from ``settings.crawl_interval``.
"""

from __future__ import annotations

import re
from unittest.mock import patch

import httpx
import pytest
import respx

from harvester.config import settings
from harvester.scraper.fetcher import fetch_page
from harvester.scraper.models import RawPage, SitemapEntry
from harvester.scraper.sitemap import fetch_sitemaps, normalize_date, parse_sitemap


# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_SITEMAP = """\
<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url>
    <loc>https://example.com/a</loc>
    <lastmod>2024-03-05T10:20:30+00:00</lastmod>
  </url>
  <url>
    <loc> https://example.com/b </loc>
    <lastmod>2024-03-06</lastmod>
  </url>
  <url>
    <lastmod>2024-03-07T00:00:00+00:00</lastmod>
  </url>
</urlset>
"""

_NOW_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")


# ---------------------------------------------------------------------------
# fetch_page
# ---------------------------------------------------------------------------

class TestFetchPage:
    def test_successful_fetch_returns_raw_page(self) -> None:
        with respx.mock:
            route = respx.get("https://example.com/article").mock(
                return_value=httpx.Response(200, text="<p>Hello</p>")
            )
            with patch("harvester.scraper.fetcher.time.sleep"):
                raw = fetch_page("https://example.com/article")

        assert isinstance(raw, RawPage)
        assert raw.status_code == 200
        assert raw.html == "<p>Hello</p>"
        assert route.calls.last.request.headers["User-Agent"] == settings.user_agent

    def test_http_error_raises(self) -> None:
        with respx.mock:
            respx.get("https://example.com/missing").mock(
                return_value=httpx.Response(404, text="Not Found")
            )
            with patch("harvester.scraper.fetcher.time.sleep"):
                with pytest.raises(httpx.HTTPStatusError):
                    fetch_page("https://example.com/missing")

    def test_transport_error_raises(self) -> None:
        with respx.mock:
            respx.get("https://example.com/down").mock(
                side_effect=httpx.ConnectError
            )
            with patch("harvester.scraper.fetcher.time.sleep"):
                with pytest.raises(httpx.HTTPError):
                    fetch_page("https://example.com/down")

    def test_waits_crawl_interval(self) -> None:
        with respx.mock:
            respx.get("https://example.com/").mock(
                return_value=httpx.Response(200, text="ok")
            )
            with patch("harvester.scraper.fetcher.time.sleep") as mock_sleep:
                fetch_page("https://example.com/")

        mock_sleep.assert_called_once_with(settings.crawl_interval)


# ---------------------------------------------------------------------------
# Sitemap parsing
# ---------------------------------------------------------------------------

class TestNormalizeDate:
    def test_iso_datetime_with_offset(self) -> None:
        assert normalize_date("2024-03-05T10:20:30+02:00") == "2024-03-05 10:20:30"

    def test_utc_designator(self) -> None:
        assert normalize_date("2024-03-05T10:20:30Z") == "2024-03-05 10:20:30"

    def test_date_only(self) -> None:
        assert normalize_date("2024-03-05") == "2024-03-05 00:00:00"

    @pytest.mark.parametrize("raw", ["", "   ", None, "last tuesday"])
    def test_missing_or_invalid_falls_back_to_now(self, raw) -> None:
        assert _NOW_PATTERN.match(normalize_date(raw))


class TestParseSitemap:
    def test_entries_in_document_order(self) -> None:
        entries = parse_sitemap(_SITEMAP, "https://example.com/sitemap.xml")
        assert entries == [
            SitemapEntry(
                url="https://example.com/a",
                date_modified="2024-03-05 10:20:30",
                sitemap_url="https://example.com/sitemap.xml",
            ),
            SitemapEntry(
                url="https://example.com/b",
                date_modified="2024-03-06 00:00:00",
                sitemap_url="https://example.com/sitemap.xml",
            ),
        ]

    def test_missing_lastmod_uses_now(self) -> None:
        xml = "<urlset><url><loc>https://example.com/x</loc></url></urlset>"
        (entry,) = parse_sitemap(xml, "s")
        assert _NOW_PATTERN.match(entry.date_modified)


class TestFetchSitemaps:
    def test_unreachable_and_invalid_sitemaps_skipped(self) -> None:
        with respx.mock:
            respx.get("https://example.com/good.xml").mock(
                return_value=httpx.Response(200, text=_SITEMAP)
            )
            respx.get("https://example.com/gone.xml").mock(
                return_value=httpx.Response(500)
            )
            respx.get("https://example.com/broken.xml").mock(
                return_value=httpx.Response(200, text="<urlset><url>")
            )
            entries = fetch_sitemaps(
                [
                    "https://example.com/gone.xml",
                    "https://example.com/broken.xml",
                    "https://example.com/good.xml",
                ]
            )

        assert [e.url for e in entries] == ["https://example.com/a", "https://example.com/b"]
        assert {e.sitemap_url for e in entries} == {"https://example.com/good.xml"}
