"""Standard research mode — a single Perplexity call, no restructuring."""

from __future__ import annotations

import logging
import re

from litreview.backends.base import SearchAnswer
from litreview.config import settings
from litreview.models.options import ResearchOptions
from litreview.models.summary import ResearchSummary
from litreview.orchestrator.normalizer import normalize_citations
from litreview.orchestrator.reconciler import deduplicate_citations, strip_dangling_markers
from litreview.orchestrator.research_executor import split_reasoning_trace

logger = logging.getLogger(__name__)

DEEP_SYSTEM_PROMPT = (
    "You are a research assistant providing in-depth literature reviews with "
    "comprehensive citations. Focus on academic sources and peer-reviewed research."
)
STANDARD_SYSTEM_PROMPT = "Be precise and concise in creating a literature review."

DEEP_MAX_TOKENS = 500
STANDARD_MAX_TOKENS = 150
DEFAULT_TEMPERATURE = 0.2
DEFAULT_TITLE = "Literature Review"

_HEADING = re.compile(r"^#+\s+(.+)$", re.MULTILINE)


def keywords_prompt(keywords: str, sources_limit: int = 10) -> str:
    return (
        f"Provide a comprehensive literature review on the following topics: {keywords}. "
        f"Include up to {sources_limit} academic sources."
    )


def extract_heading(content: str) -> str:
    """First markdown heading, else the first non-empty line, else a default."""
    match = _HEADING.search(content)
    if match:
        return match.group(1).strip()
    for line in content.splitlines():
        if line.strip():
            return line.strip().lstrip("#").strip() or DEFAULT_TITLE
    return DEFAULT_TITLE


class StandardResearch:
    """Literature review straight from the search provider."""

    def __init__(self, search: SearchAnswer) -> None:
        self.search = search

    async def generate(self, text: str, options: ResearchOptions | None = None) -> ResearchSummary:
        """Summarize ``text``. Provider errors propagate to the caller."""
        options = options or ResearchOptions()
        if options.use_deep_research:
            model = settings.deep_research_model
            system_prompt = DEEP_SYSTEM_PROMPT
            max_tokens = options.max_tokens or DEEP_MAX_TOKENS
        else:
            model = settings.search_model
            system_prompt = STANDARD_SYSTEM_PROMPT
            max_tokens = options.max_tokens or STANDARD_MAX_TOKENS
        domains = (
            list(options.search_domains)
            if options.search_domains is not None
            else list(settings.search_domains)
        )

        logger.info(
            "Standard research: model=%s, text length=%d, max_tokens=%d",
            model,
            len(text),
            max_tokens,
        )
        result = await self.search.answer(
            text,
            model=model,
            max_tokens=max_tokens,
            temperature=(
                options.temperature if options.temperature is not None else DEFAULT_TEMPERATURE
            ),
            domain_filter=domains or None,
            system_prompt=system_prompt,
        )

        content, trace = split_reasoning_trace(result.content or "")
        reconciled = deduplicate_citations(normalize_citations(result.citation_urls), content)
        summary = ResearchSummary(
            title=extract_heading(reconciled.content),
            content=strip_dangling_markers(reconciled.content, len(reconciled.citations)),
            citations=reconciled.citations,
            model_used=result.model or model,
            reasoning_trace=trace,
        )
        logger.info("Generated research summary with title: %s", summary.title)
        return summary
