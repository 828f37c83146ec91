"""Corpus package: per-page text storage and chunked aggregation."""

from harvester.corpus.assembler import Chunk, assemble, pack_chunks
from harvester.corpus.store import (
    read_units,
    sanitize_filename,
    store_text,
    store_unit,
    write_aggregate,
)

__all__ = [
    "Chunk",
    "assemble",
    "pack_chunks",
    "read_units",
    "sanitize_filename",
    "store_text",
    "store_unit",
    "write_aggregate",
]
