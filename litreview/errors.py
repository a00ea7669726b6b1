"""Exception types shared across the research pipeline."""

from __future__ import annotations


class ExternalServiceError(Exception):
    """A call to an external AI capability failed (network, timeout, non-2xx)."""

    def __init__(self, service: str, message: str, status_code: int | None = None) -> None:
        self.service = service
        self.message = message
        self.status_code = status_code
        prefix = f"{service} API error"
        if status_code is not None:
            prefix = f"{prefix} ({status_code})"
        super().__init__(f"{prefix}: {message}")


class MalformedResponseError(ExternalServiceError):
    """The external capability answered, but not in the expected shape."""


class ResearchExecutionError(ExternalServiceError):
    """The single search-augmented research call failed. Always fatal."""


class DeepResearchError(Exception):
    """The deep research pipeline aborted."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"Deep research agent failure: {cause}")


class CitationEnhancementError(Exception):
    """Enhancing free text with citations failed."""
