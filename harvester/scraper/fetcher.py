"""Polite HTTP fetcher for individual pages."""

from __future__ import annotations

import time
from typing import Optional

import httpx

from harvester.config import settings
from harvester.scraper.models import RawPage


def default_headers() -> dict[str, str]:
    return {"User-Agent": settings.user_agent}


def fetch_page(url: str, client: Optional[httpx.Client] = None) -> RawPage:
    """Fetch *url* and return a :class:`RawPage`.

    Waits ``settings.crawl_interval`` seconds after the request so parallel
    workers do not hammer a site.

    Raises:
        httpx.HTTPStatusError: If the server returns a 4xx/5xx status code.
        httpx.HTTPError: On transport failures (DNS, timeouts, resets).
    """
    try:
        if client is not None:
            response = client.get(url)
        else:
            with httpx.Client(
                headers=default_headers(),
                timeout=settings.request_timeout,
                follow_redirects=True,
            ) as own_client:
                response = own_client.get(url)
        response.raise_for_status()
    finally:
        time.sleep(settings.crawl_interval)

    return RawPage(url=url, html=response.text, status_code=response.status_code)
