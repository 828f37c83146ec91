"""Aggregate assembler for the harvested corpus.

Strategy: concatenate every stored text unit into one master document, and
greedily pack the same units, in order, into chunks whose UTF-8 size stays
within a byte limit.  A unit is never split: one that is larger than the
limit on its own gets a chunk to itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

SEPARATOR = "\n\n\n"


@dataclass
class Chunk:
    index: int
    header: str
    body: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return self.header + SEPARATOR + SEPARATOR.join(self.body)

    @property
    def size(self) -> int:
        """Serialized size in bytes."""
        return len(self.text.encode("utf-8"))


def master_document(units: Sequence[str], header: str) -> str:
    """Return *header* followed by every unit, three line breaks apart."""
    return header + SEPARATOR + SEPARATOR.join(units)


def pack_chunks(units: Sequence[str], header: str, chunk_limit_bytes: int) -> list[Chunk]:
    """Pack *units* into byte-bounded :class:`Chunk` objects.

    Args:
        units: Text units in their authoritative order.
        header: Text that opens every chunk.
        chunk_limit_bytes: Maximum serialized size of a chunk.  Only a chunk
            holding a single oversized unit may exceed it.

    Returns:
        The chunks in order, indexed from 1.  Returns ``[]`` for no units.

    Raises:
        ValueError: If *chunk_limit_bytes* is not positive.

    Algorithm:
        Try appending the next unit (after a separator, unless it is the
        first unit of the chunk).  If the result would exceed the limit and
        the chunk already holds something, close the chunk and open a new
        one with this unit; otherwise keep the unit in the current chunk.
    """
    if chunk_limit_bytes <= 0:
        raise ValueError(f"chunk_limit_bytes must be positive, got {chunk_limit_bytes}")

    sep_size = len(SEPARATOR.encode("utf-8"))
    base_size = len(header.encode("utf-8")) + sep_size

    chunks: list[Chunk] = []
    current = Chunk(index=1, header=header)
    size = base_size

    for unit in units:
        unit_size = len(unit.encode("utf-8"))
        tentative = size + (sep_size if current.body else 0) + unit_size
        if tentative > chunk_limit_bytes and current.body:
            chunks.append(current)
            current = Chunk(index=current.index + 1, header=header, body=[unit])
            size = base_size + unit_size
        else:
            current.body.append(unit)
            size = tentative

    if current.body:
        chunks.append(current)
    return chunks


def assemble(
    units: Sequence[str], header: str, chunk_limit_bytes: int
) -> tuple[str, list[str]]:
    """Build the master document and the serialized chunks for *units*."""
    chunks = pack_chunks(units, header, chunk_limit_bytes)
    return master_document(units, header), [c.text for c in chunks]
