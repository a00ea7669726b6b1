"""Protocols for the external AI capabilities used by the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import httpx

from litreview.errors import ExternalServiceError


@dataclass
class SearchResult:
    """Prose answer plus the ordered source URLs returned by a search call."""

    content: str
    citation_urls: list[str] = field(default_factory=list)
    model: str = ""


@runtime_checkable
class ChatCompletion(Protocol):
    """A chat model with a system-prompt / user-message split."""

    name: str

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        *,
        model: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.2,
    ) -> str:
        """Return the model's text reply."""
        ...


@runtime_checkable
class SearchAnswer(Protocol):
    """A search-augmented answering model returning prose and citation URLs."""

    name: str

    async def answer(
        self,
        query: str,
        *,
        model: str | None = None,
        max_tokens: int = 8000,
        temperature: float = 0.2,
        domain_filter: list[str] | None = None,
        system_prompt: str | None = None,
    ) -> SearchResult:
        """Run one search-augmented completion."""
        ...


def wrap_http_error(service: str, exc: httpx.HTTPError) -> ExternalServiceError:
    """Translate an httpx failure into an ExternalServiceError with upstream detail."""
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        message = response.reason_phrase or str(exc)
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                message = error["message"]
            elif isinstance(error, str):
                message = error
        return ExternalServiceError(service, message, status_code=response.status_code)
    if isinstance(exc, httpx.TimeoutException):
        return ExternalServiceError(service, f"request timed out ({type(exc).__name__})")
    return ExternalServiceError(service, str(exc) or type(exc).__name__)
