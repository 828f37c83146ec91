"""Per-site extraction rules loaded from the sources JSON file.

Expected layout::

    {
      "sources": [
        {
          "name": "docs",
          "sitemaps": {
            "https://example.com/page-sitemap.xml": {
              "selector": ["main article"],
              "exclusion": [".share-buttons"],
              "table_operation": 1
            }
          }
        }
      ]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from harvester.config import settings


class SourcesConfigError(ValueError):
    """Raised when the sources file is missing or malformed."""


@dataclass(frozen=True)
class SitemapRule:
    sitemap_url: str
    selectors: tuple[str, ...]
    exclusions: tuple[str, ...] = ()
    table_operation: bool = True


@dataclass
class Source:
    name: str
    rules: list[SitemapRule] = field(default_factory=list)

    @property
    def sitemap_urls(self) -> list[str]:
        return [r.sitemap_url for r in self.rules]

    def rule_for(self, sitemap_url: str) -> Optional[SitemapRule]:
        for rule in self.rules:
            if rule.sitemap_url == sitemap_url:
                return rule
        return None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _string_list(value: Any, what: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise SourcesConfigError(f"{what} must be a list of strings")
    return tuple(value)


def _parse_rule(sitemap_url: str, raw: Any) -> SitemapRule:
    if not isinstance(raw, dict):
        raise SourcesConfigError(f"Rule for {sitemap_url!r} must be an object")
    selectors = _string_list(raw.get("selector"), f"{sitemap_url!r} selector")
    if not selectors:
        raise SourcesConfigError(f"Rule for {sitemap_url!r} has no selector")
    return SitemapRule(
        sitemap_url=sitemap_url,
        selectors=selectors,
        exclusions=_string_list(raw.get("exclusion"), f"{sitemap_url!r} exclusion"),
        # Stored as 0/1 in existing config files.
        table_operation=raw.get("table_operation", 1) in (1, True, "1"),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_sources(data: Any) -> list[Source]:
    """Build :class:`Source` objects from already-decoded JSON *data*."""
    if not isinstance(data, dict) or not isinstance(data.get("sources"), list):
        raise SourcesConfigError("Sources file must contain a 'sources' list")

    sources: list[Source] = []
    for idx, raw in enumerate(data["sources"]):
        if not isinstance(raw, dict):
            raise SourcesConfigError(f"Source #{idx} must be an object")
        sitemaps = raw.get("sitemaps") or {}
        if not isinstance(sitemaps, dict):
            raise SourcesConfigError(f"Source #{idx} 'sitemaps' must be an object")
        rules = [_parse_rule(url, rule) for url, rule in sitemaps.items()]
        sources.append(Source(name=str(raw.get("name") or f"source-{idx + 1}"), rules=rules))
    return sources


def load_sources(path: Optional[Path] = None) -> list[Source]:
    """Read and validate the sources file.

    Args:
        path: Override the file location.  Defaults to ``settings.sources_path``.

    Raises:
        SourcesConfigError: If the file is missing, not valid JSON, or does
            not follow the expected layout.
    """
    path = path or settings.sources_path
    if not path.exists():
        raise SourcesConfigError(f"Missing sources file: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SourcesConfigError(f"Error parsing sources file {path}: {exc}") from exc
    return parse_sources(data)
