"""Shared fakes for the external capabilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from litreview.backends.base import SearchResult
from litreview.models.progress import ProgressEvent


@dataclass
class FakeChat:
    """Returns queued replies in order; queued exceptions are raised."""

    replies: list[Any] = field(default_factory=list)
    calls: list[dict[str, Any]] = field(default_factory=list)
    name: str = "FakeChat"

    async def complete(self, system_prompt, user_message, *, model=None, max_tokens=2048, temperature=0.2):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_message": user_message,
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@dataclass
class FakeSearch:
    results: list[Any] = field(default_factory=list)
    calls: list[dict[str, Any]] = field(default_factory=list)
    name: str = "FakeSearch"

    async def answer(
        self,
        query,
        *,
        model=None,
        max_tokens=8000,
        temperature=0.2,
        domain_filter=None,
        system_prompt=None,
    ):
        self.calls.append({
            "query": query,
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "domain_filter": domain_filter,
            "system_prompt": system_prompt,
        })
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@dataclass
class RecordingBroadcaster:
    events: list[ProgressEvent] = field(default_factory=list)

    async def publish(self, event: ProgressEvent) -> None:
        self.events.append(event)


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


def search_result(content: str, urls: list[str] | None = None, model: str = "sonar-deep-research"):
    return SearchResult(content=content, citation_urls=list(urls or []), model=model)
