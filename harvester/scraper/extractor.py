"""Selector-driven text extraction: turns page HTML into clean, readable text.

Only the parts of a page matched by the configured *inclusion* selectors are
rendered.  Inside every match, ``<script>``/``<style>`` nodes and anything
matched by an *exclusion* selector are pruned, tables are optionally
flattened to ``Header: value`` lines, and the rest is rendered with a line
break after every block-level element.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence

import soupsieve
from bs4 import BeautifulSoup, NavigableString, PageElement, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction
from soupsieve import SelectorSyntaxError

from harvester.scraper.models import ExtractionRequest
from harvester.scraper.tables import flatten_table

INLINE_TAGS = frozenset({"i", "b", "strong", "em", "a", "span"})

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)
_BLANK_RUNS = re.compile(r"\n{2,}")

# soupsieve raises NotImplementedError for pseudo-elements such as ``::before``.
_SELECTOR_ERRORS = (SelectorSyntaxError, NotImplementedError)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _is_inline(element: Optional[PageElement]) -> bool:
    return isinstance(element, Tag) and element.name.lower() in INLINE_TAGS


def _starts_word(element: Optional[PageElement]) -> bool:
    """True if *element* renders text that would stick to the text before it."""
    if _is_inline(element):
        return True
    if not isinstance(element, NavigableString) or isinstance(element, _SKIPPED_STRINGS):
        return False
    text = str(element)
    return bool(text) and not text[0].isspace()


class _Frame:
    """An element being rendered: its remaining children and output so far."""

    __slots__ = ("tag", "children", "out", "trimmed")

    def __init__(self, tag: Tag) -> None:
        self.tag = tag
        self.children = iter(tag.children)
        self.out = ""
        # The last piece appended lost trailing whitespace.
        self.trimmed = False

    def append(self, child: PageElement, piece: str, trimmed: bool) -> None:
        if isinstance(child, Tag) and not _is_inline(child) and self.out and not self.out.endswith("\n"):
            self.out += "\n"
        self.out += piece
        if trimmed and self.out and not self.out[-1].isspace() and _starts_word(child.next_sibling):
            self.out += " "
        self.trimmed = trimmed


def render_text(node: PageElement) -> str:
    """Render *node* depth-first.

    Text leaves lose their trailing whitespace.  Inline elements contribute
    their children's text as-is; every other element is right-trimmed and
    followed by exactly one ``\\n``.
    """
    if isinstance(node, NavigableString):
        if isinstance(node, _SKIPPED_STRINGS):
            return ""
        return str(node).rstrip()
    if not isinstance(node, Tag):
        return ""

    inner = render_children(node)
    if node.name.lower() in INLINE_TAGS:
        return inner
    return inner.rstrip() + "\n"


def render_children(node: Tag) -> str:
    """Concatenate the rendered children of *node*.

    A block element always starts on a fresh line.  Whitespace trimmed from
    the end of a text leaf, or of an inline element, survives as a single
    space when text follows directly, so ``Hello <b>world</b>`` reads
    ``Hello world`` and ``<a>Click </a>here`` reads ``Click here``.

    The tree is walked with an explicit stack, so arbitrarily deep markup
    (e.g. thousands of unclosed ``<div>``) renders without recursion.
    """
    frames = [_Frame(node)]
    while True:
        frame = frames[-1]
        child = next(frame.children, None)
        if child is None:
            frames.pop()
            if not frames:
                return frame.out
            if _is_inline(frame.tag):
                frames[-1].append(frame.tag, frame.out, frame.trimmed)
            else:
                frames[-1].append(frame.tag, frame.out.rstrip() + "\n", False)
        elif isinstance(child, Tag):
            frames.append(_Frame(child))
        elif isinstance(child, NavigableString) and not isinstance(child, _SKIPPED_STRINGS):
            piece = str(child).rstrip()
            frame.append(child, piece, piece != str(child))


# ---------------------------------------------------------------------------
# Per-match processing
# ---------------------------------------------------------------------------

def _select(node: Tag, selector: str) -> list[Tag]:
    """Evaluate *selector* under *node*; malformed selectors match nothing."""
    try:
        return node.select(selector)
    except _SELECTOR_ERRORS:
        return []


def _prune(node: Tag, exclusions: Iterable[str]) -> None:
    for tag in node.find_all(["script", "style"]):
        if not tag.decomposed:
            tag.decompose()
    for selector in exclusions:
        for match in _select(node, selector):
            if not match.decomposed:
                match.decompose()


def _is_excluded(table: Tag, node: Tag, exclusions: Sequence[str]) -> bool:
    """True if *table* or one of its ancestors up to *node* is excluded."""
    lineage = [table]
    for parent in table.parents:
        lineage.append(parent)
        if parent is node:
            break

    for selector in exclusions:
        try:
            if any(soupsieve.match(selector, el) for el in lineage):
                return True
        except _SELECTOR_ERRORS:
            continue
    return False


def _take_tables(node: Tag, exclusions: Sequence[str]) -> list[str]:
    """Flatten and detach every table under *node*, in source order.

    A nested table is flattened on its own as well as inside the rows of
    the table that contains it.
    """
    texts: list[str] = []
    taken: list[Tag] = []
    for table in node.find_all("table"):
        if not _is_excluded(table, node, exclusions):
            flat = flatten_table(table)
            if flat:
                texts.append(flat.strip())
        table.extract()
        taken.append(table)

    for table in taken:
        if not table.decomposed:
            table.decompose()
    return texts


def _extract_node(node: Tag, exclusions: Sequence[str], table_operation: bool) -> list[str]:
    _prune(node, exclusions)
    table_texts = _take_tables(node, exclusions) if table_operation else []

    text = _BLANK_RUNS.sub("\n", render_children(node)).strip()
    chunks = [text] if text else []
    chunks.extend(table_texts)
    return chunks


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_text(
    html: str,
    selectors: Sequence[str],
    exclusions: Sequence[str] = (),
    table_operation: bool = True,
) -> Optional[str]:
    """Extract readable text from *html* using CSS *selectors*.

    Every match of every selector (selectors in the given order, matches in
    document order) yields a chunk; chunks are joined with a blank line.
    Invalid selectors are skipped.  The HTML is parsed into a private tree,
    so the call has no side effects.

    Args:
        html: Full HTML content of a page.
        selectors: Inclusion selectors whose subtrees are rendered.
        exclusions: Selectors whose subtrees are pruned from every match.
        table_operation: Flatten ``<table>`` markup to ``Header: value`` lines
            instead of rendering it as plain block text.

    Returns:
        The combined text, or ``None`` if nothing was found.
    """
    if not selectors:
        return None

    soup = BeautifulSoup(html, "html.parser")
    chunks: list[str] = []

    for selector in selectors:
        for node in _select(soup, selector):
            if node.decomposed:
                # Removed while processing an earlier match.
                continue
            chunks.extend(_extract_node(node, exclusions, table_operation))

    if not chunks:
        return None
    return "\n\n".join(chunks)


def extract(request: ExtractionRequest) -> Optional[str]:
    """Run :func:`extract_text` for an :class:`ExtractionRequest`."""
    return extract_text(
        request.html,
        request.selectors,
        request.exclusions,
        request.table_operation,
    )


def validate_selectors(selectors: Iterable[str]) -> dict[str, str]:
    """Return ``{selector: error}`` for every selector that does not compile.

    :func:`extract_text` silently skips such selectors; this is meant for
    checking configuration up front.
    """
    errors: dict[str, str] = {}
    for selector in selectors:
        try:
            soupsieve.compile(selector)
        except _SELECTOR_ERRORS as exc:
            errors[selector] = (str(exc) or type(exc).__name__).splitlines()[0]
    return errors
