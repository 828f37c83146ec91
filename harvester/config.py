"""Centralised settings for the harvester.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).  Per-site extraction
rules live in a separate JSON file, see :mod:`harvester.sources`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    storage_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("HARVESTER_STORAGE", "storage"))
    )
    sources_path: Path = field(
        default_factory=lambda: Path(
            os.environ.get("HARVESTER_SOURCES", "config/sources.json")
        )
    )
    aggregated_file_override: str = field(
        default_factory=lambda: os.environ.get("AGGREGATED_FILE", "")
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite URL ledger."""
        return self.storage_dir / "harvester.db"

    @property
    def text_dir(self) -> Path:
        """Directory holding one extracted text file per URL."""
        return self.storage_dir / "text"

    @property
    def log_dir(self) -> Path:
        return self.storage_dir / "log"

    @property
    def aggregated_file(self) -> Path:
        """Master corpus file; part files are written beside it."""
        if self.aggregated_file_override:
            return Path(self.aggregated_file_override)
        return self.storage_dir / "aggregated.txt"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Crawler
    # ------------------------------------------------------------------
    user_agent: str = field(
        default_factory=lambda: os.environ.get("USER_AGENT", "ScraperBot/1.0")
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "10"))
    )
    crawl_interval: float = field(
        default_factory=lambda: float(os.environ.get("CRAWL_INTERVAL", "1.0"))
    )
    max_workers: int = field(
        default_factory=lambda: int(os.environ.get("MAX_WORKERS", "4"))
    )

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------
    aggregated_chunk_size: int = field(
        default_factory=lambda: int(os.environ.get("AGGREGATED_CHUNK_SIZE", "1000"))
    )
    copyright_text: str = field(
        default_factory=lambda: os.environ.get("COPYRIGHT_TEXT", "")
    )

    def ensure_storage(self) -> None:
        """Create the storage directories if they do not exist."""
        self.text_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton, import this everywhere:
#   from harvester.config import settings
settings = Settings()
