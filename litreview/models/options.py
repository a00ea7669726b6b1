"""Per-request research options."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ResearchOptions:
    """Options validated once at the boundary and passed unchanged through a run."""

    use_deep_research: bool = False
    max_tokens: int | None = None
    search_domains: tuple[str, ...] | None = None
    temperature: float | None = None

    def __post_init__(self) -> None:
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise ValueError("max_tokens must be a positive integer")
        if self.temperature is not None and not 0.0 <= self.temperature <= 2.0:
            raise ValueError("temperature must be between 0 and 2")
        if self.search_domains is not None:
            domains = tuple(d.strip() for d in self.search_domains)
            if any(not d for d in domains):
                raise ValueError("search_domains must not contain blank entries")
            object.__setattr__(self, "search_domains", domains)
