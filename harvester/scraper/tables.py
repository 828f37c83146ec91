"""Turn HTML ``<table>`` markup into LLM-friendly ``Header: value`` lines.

The first row is always treated as the header, whether or not the table has
a ``<thead>``.  Every following row becomes one line::

    Name: Ann, Age: 30
    Name: Bob, Age: 41
"""

from __future__ import annotations

from typing import Optional, Sequence

from bs4 import Tag


def table_rows(table: Tag) -> list[list[str]]:
    """Return the trimmed cell texts of every row in *table*.

    Rows are collected from anywhere inside the table (``thead``, ``tbody``
    and ``tfoot`` alike).  Rows without ``td``/``th`` cells are dropped.
    """
    rows: list[list[str]] = []
    for tr in table.find_all("tr"):
        cells = [
            cell.get_text().strip()
            for cell in tr.find_all(["td", "th"], recursive=False)
        ]
        if cells:
            rows.append(cells)
    return rows


def format_rows(rows: Sequence[Sequence[str]]) -> Optional[str]:
    """Pair each data row with the header row.

    Missing cells read as empty strings; cells beyond the header width are
    ignored.  Returns ``None`` when there is no data row.
    """
    if len(rows) < 2:
        return None

    header = rows[0]
    lines = []
    for row in rows[1:]:
        pairs = [
            f"{key}: {row[j] if j < len(row) else ''}"
            for j, key in enumerate(header)
        ]
        lines.append(", ".join(pairs))
    return "\n".join(lines)


def flatten_table(table: Tag) -> Optional[str]:
    """Flatten *table* to text, or ``None`` if it has no data rows."""
    return format_rows(table_rows(table))
