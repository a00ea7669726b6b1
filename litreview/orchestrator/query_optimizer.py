"""Query optimizer — rewrites user input into a dense search query."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from litreview.backends.base import ChatCompletion
from litreview.errors import ExternalServiceError, MalformedResponseError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are an expert research assistant that helps formulate precise, detailed search queries.
Your task is to analyze the user's research topic or text and transform it into an optimized search query.
Create a query that will yield comprehensive academic results when sent to a search system.
Focus on extracting key concepts, using proper terminology, and including any relevant qualifiers.
The query should be a single paragraph that thoroughly describes what information is being sought.
Do not include any explanations or formatting - just output the optimized query text.\
"""


@dataclass
class QueryOutcome:
    """The query to search with, and whether it is the unmodified input."""

    query: str
    fallback: bool = False
    error: str | None = None


class QueryOptimizer:
    """One chat call that turns a topic, abstract, or keyword list into a query."""

    def __init__(
        self,
        chat: ChatCompletion,
        model: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.1,
    ) -> None:
        self.chat = chat
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def optimize(self, topic: str) -> QueryOutcome:
        """Return an optimized query, or the original topic if the call fails."""
        try:
            text = await self.chat.complete(
                SYSTEM_PROMPT,
                f'Please create an optimized research query from this topic or text: "{topic}"',
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            if not isinstance(text, str):
                raise MalformedResponseError(self.chat.name, "non-text query returned")
            query = text.strip()
            if not query:
                raise MalformedResponseError(self.chat.name, "empty query returned")
        except ExternalServiceError as exc:
            logger.warning("Query optimization failed, using original topic: %s", exc)
            return QueryOutcome(query=topic, fallback=True, error=str(exc))

        logger.info("Optimized query created (%d chars)", len(query))
        return QueryOutcome(query=query)
