"""Run log: one line per processed page, to ``webscraper.log`` and stdout."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from harvester.scraper.models import PageResult

LOG_FILE = "webscraper.log"

logger = logging.getLogger("harvester")


def configure_logging(log_dir: Path, level: int = logging.INFO) -> None:
    """Attach file and stdout handlers to the ``harvester`` logger.

    Calling it again replaces the handlers, so repeated runs in one process
    do not duplicate lines.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    fh = logging.FileHandler(log_dir / LOG_FILE, encoding="utf-8")
    fh.setFormatter(formatter)
    ch = logging.StreamHandler(stream=sys.stdout)
    ch.setFormatter(formatter)
    logger.addHandler(fh)
    logger.addHandler(ch)


def format_page_line(result: PageResult) -> str:
    return " | ".join(
        [
            result.url,
            ", ".join(result.selectors),
            result.date_modified,
            "crawled" if result.crawled else "not crawled",
            "scraped" if result.scraped else "not scraped",
            "stored" if result.stored else "not stored",
        ]
    )


def log_page(result: PageResult) -> None:
    logger.info(format_page_line(result))
