"""Research executor — the single search-augmented research call."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from litreview.backends.base import SearchAnswer
from litreview.config import settings
from litreview.errors import ExternalServiceError, MalformedResponseError, ResearchExecutionError
from litreview.models.options import ResearchOptions

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 16000
DEFAULT_TEMPERATURE = 0.2

# An unterminated trace runs to the end of the text.
_TRACE_PATTERN = re.compile(r"<think>(.*?)(?:</think>|\Z)", re.DOTALL | re.IGNORECASE)


@dataclass
class ResearchOutput:
    """Cited prose and its ordered source URLs, with any reasoning trace removed."""

    content: str
    citation_urls: list[str] = field(default_factory=list)
    reasoning_trace: str | None = None
    model: str = ""


def split_reasoning_trace(content: str) -> tuple[str, str | None]:
    """Separate ``<think>`` sections from the answer.

    Returns the answer with every trace removed, and the joined trace text
    (or None when there was no trace).
    """
    traces = [m.group(1).strip() for m in _TRACE_PATTERN.finditer(content)]
    if not traces:
        return content, None
    answer = _TRACE_PATTERN.sub("", content).strip()
    trace = "\n\n".join(t for t in traces if t)
    return answer, trace or None


class ResearchExecutor:
    """Calls the search capability exactly once per research request."""

    def __init__(self, search: SearchAnswer, model: str | None = None) -> None:
        self.search = search
        self.model = model or settings.deep_research_model

    async def execute(self, query: str, options: ResearchOptions | None = None) -> ResearchOutput:
        """Run the research call. Failures are wrapped and raised, never recovered."""
        options = options or ResearchOptions()
        domains = (
            list(options.search_domains)
            if options.search_domains is not None
            else list(settings.search_domains)
        )
        try:
            result = await self.search.answer(
                query,
                model=self.model,
                max_tokens=options.max_tokens or DEFAULT_MAX_TOKENS,
                temperature=(
                    options.temperature if options.temperature is not None else DEFAULT_TEMPERATURE
                ),
                domain_filter=domains or None,
            )
            content, trace = split_reasoning_trace(result.content or "")
            if not content:
                raise MalformedResponseError(
                    self.search.name, "response contained no research content"
                )
        except ResearchExecutionError:
            raise
        except ExternalServiceError as exc:
            logger.error("Research call failed: %s", exc)
            raise ResearchExecutionError(
                exc.service, exc.message, status_code=exc.status_code
            ) from exc

        if trace:
            logger.info("Extracted reasoning trace (%d chars) from research content", len(trace))
        logger.info(
            "Research returned %d chars with %d citation URLs",
            len(content),
            len(result.citation_urls),
        )
        return ResearchOutput(
            content=content,
            citation_urls=list(result.citation_urls),
            reasoning_trace=trace,
            model=result.model or self.model,
        )
