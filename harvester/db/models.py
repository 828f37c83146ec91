"""Dataclass models representing DB rows.

These are plain Python objects – not ORM models.
"""

from __future__ import annotations

from dataclasses import dataclass

STATUSES = ("enabled", "disabled", "auto_disabled")


@dataclass
class UrlRecord:
    id: int
    url: str
    date_modified: str
    crawl_error: int
    scraped_error: int
    status: str

    @property
    def enabled(self) -> bool:
        return self.status == "enabled"
