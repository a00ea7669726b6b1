"""Citation data model."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Citation:
    """A display-ready reference. Its 1-based position in a list is its identity."""

    authors: str
    text: str
    url: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Citation:
        return cls(
            authors=data.get("authors") or "",
            text=data.get("text") or "",
            url=data.get("url") or None,
        )


SENTINEL_CITATION = Citation(
    authors="No citations available",
    text="The source information for this research could not be retrieved.",
    url=None,
)
