"""Citation deduplication and in-text marker renumbering.

Documents reference citations with positional ``[n]`` markers (1-based).
When duplicate sources are collapsed, every marker is rewritten so that it
still points at the same source in the compacted list.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from litreview.models.citation import Citation

logger = logging.getLogger(__name__)

MARKER_PATTERN = re.compile(r"\[(\d+)\]")

# Citation text is "(year). Title. ...": the title is whatever follows ")."
# up to the next full stop. Approximate by nature.
_TITLE_PATTERN = re.compile(r"\)\.\s([^.]+)")


@dataclass
class Reconciliation:
    """Deduplicated citations, remapped content, and the old -> new index map."""

    citations: list[Citation]
    content: str
    index_map: dict[int, int] = field(default_factory=dict)


def extract_title(text: str) -> str | None:
    """Best-effort title fragment from a citation line, or None."""
    if not text:
        return None
    match = _TITLE_PATTERN.search(text)
    if not match:
        return None
    title = match.group(1).strip()
    return title or None


def citation_key(citation: Citation, index: int) -> str:
    """Dedup key: normalized URL, else extracted title, else unique per index."""
    try:
        url = (citation.url or "").strip().lower().rstrip("/")
        if url:
            return f"url:{url}"
        title = extract_title(citation.text or "")
        if title:
            return f"title:{title.lower()}"
    except (AttributeError, TypeError) as exc:
        logger.warning("Could not derive key for citation %d, treating as unique: %s", index, exc)
    return f"citation:{index}"


def deduplicate_citations(citations: list[Citation], content: str) -> Reconciliation:
    """Drop duplicate sources (first occurrence wins) and renumber markers."""
    if len(citations) <= 1:
        return Reconciliation(citations=list(citations), content=content)

    unique: list[Citation] = []
    positions: dict[str, int] = {}
    index_map: dict[int, int] = {}
    for old_index, citation in enumerate(citations, 1):
        key = citation_key(citation, old_index)
        if key not in positions:
            unique.append(citation)
            positions[key] = len(unique)
        index_map[old_index] = positions[key]

    if len(unique) == len(citations):
        return Reconciliation(citations=list(citations), content=content, index_map=index_map)

    logger.info("Collapsed %d duplicate citations", len(citations) - len(unique))
    return Reconciliation(
        citations=unique,
        content=renumber_markers(content, index_map),
        index_map=index_map,
    )


def renumber_markers(content: str, index_map: dict[int, int]) -> str:
    """Rewrite every ``[old]`` to ``[new]`` in one pass; unmapped markers stay."""
    if not content or not index_map:
        return content

    def _replace(match: re.Match) -> str:
        new_index = index_map.get(int(match.group(1)))
        return match.group(0) if new_index is None else f"[{new_index}]"

    return MARKER_PATTERN.sub(_replace, content)


def strip_dangling_markers(content: str, count: int) -> str:
    """Remove markers numbered past ``count``. ``[0]`` is never a citation marker."""
    if not content:
        return content

    def _replace(match: re.Match) -> str:
        return match.group(0) if int(match.group(1)) <= count else ""

    return MARKER_PATTERN.sub(_replace, content)


def marker_numbers(content: str) -> list[int]:
    """All marker numbers in order of appearance."""
    return [int(n) for n in MARKER_PATTERN.findall(content or "")]
