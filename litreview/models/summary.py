"""Research summary data model."""

from __future__ import annotations

from dataclasses import dataclass

from litreview.models.citation import Citation


@dataclass(frozen=True)
class ResearchSummary:
    """The result of one research run. Built once and never updated in place."""

    title: str
    content: str
    citations: tuple[Citation, ...] = ()
    model_used: str = ""
    reasoning_trace: str | None = None
    id: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "citations", tuple(self.citations))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "citations": [c.to_dict() for c in self.citations],
            "model_used": self.model_used,
            "reasoning_trace": self.reasoning_trace,
        }
