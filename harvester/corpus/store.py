"""File storage for extracted page text and the aggregated corpus."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Sequence

from harvester.corpus.assembler import assemble
from harvester.scraper.models import TextUnit

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_\-]")
MAX_NAME_LENGTH = 200
TEXT_SUFFIX = ".txt"


def sanitize_filename(url: str) -> str:
    """Map *url* to a safe file name, e.g. ``https___example_com_a.txt``."""
    return _UNSAFE_CHARS.sub("_", url)[:MAX_NAME_LENGTH] + TEXT_SUFFIX


def store_text(text_dir: Path, url: str, text: str) -> Path:
    """Write *text* for *url*, followed by a ``Reference:`` footer.

    Any earlier version for the same URL is overwritten.

    Returns:
        The path of the written file.

    Raises:
        OSError: If the directory cannot be created or the file written.
    """
    text_dir.mkdir(parents=True, exist_ok=True)
    path = text_dir / sanitize_filename(url)
    path.write_text(f"{text}\n\nReference: {url}", encoding="utf-8")
    return path


def store_unit(text_dir: Path, unit: TextUnit) -> Path:
    return store_text(text_dir, unit.source_url, unit.body)


def read_units(text_dir: Path) -> list[str]:
    """Return the contents of every stored text file, sorted by file name."""
    if not text_dir.is_dir():
        return []
    return [
        path.read_text(encoding="utf-8")
        for path in sorted(text_dir.glob(f"*{TEXT_SUFFIX}"))
    ]


def part_path(aggregated_file: Path, index: int) -> Path:
    return aggregated_file.with_name(
        f"{aggregated_file.stem}_part_{index}{aggregated_file.suffix or TEXT_SUFFIX}"
    )


def write_aggregate(
    units: Sequence[str],
    aggregated_file: Path,
    header: str,
    chunk_size_kb: int,
) -> list[Path]:
    """Write the master corpus file and its ``_part_<n>`` chunks.

    Part files left over from a previous, larger run are deleted first so the
    directory always reflects the current chunking.

    Args:
        units: Stored text units in their authoritative order.
        aggregated_file: Path of the master file; parts are written beside it.
        header: Text opening the master file and every part (e.g. copyright).
        chunk_size_kb: Part size limit in kilobytes (x 1024 bytes).

    Returns:
        The part file paths, in index order.
    """
    master, chunks = assemble(units, header, chunk_size_kb * 1024)

    aggregated_file.parent.mkdir(parents=True, exist_ok=True)
    aggregated_file.write_text(master, encoding="utf-8")

    suffix = aggregated_file.suffix or TEXT_SUFFIX
    for stale in aggregated_file.parent.glob(f"{aggregated_file.stem}_part_*{suffix}"):
        stale.unlink()

    parts: list[Path] = []
    for index, chunk in enumerate(chunks, start=1):
        path = part_path(aggregated_file, index)
        path.write_text(chunk.rstrip() + "\n", encoding="utf-8")
        parts.append(path)

    logger.info(
        "Aggregated %d unit(s) into %s (%d part(s))", len(units), aggregated_file, len(parts)
    )
    return parts
