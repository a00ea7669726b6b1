"""Deep research agent — query rewrite, one research call, then restructuring.

1. Claude turns the user's input into an optimized search query.
2. Perplexity is called exactly once with that query.
3. Citations are normalized, deduplicated and the content renumbered.
4. Claude restructures the prose into a titled article using only the
   surviving citation numbers.

Steps 1 and 4 degrade gracefully; a failure in step 2 aborts the run.
"""

from __future__ import annotations

import logging
from typing import Any

from litreview.backends.base import ChatCompletion, SearchAnswer
from litreview.errors import DeepResearchError
from litreview.models.options import ResearchOptions
from litreview.models.progress import ProgressEvent, Stage
from litreview.models.summary import ResearchSummary
from litreview.orchestrator.normalizer import normalize_citations
from litreview.orchestrator.progress import NullBroadcaster, ProgressBroadcaster
from litreview.orchestrator.query_optimizer import QueryOptimizer
from litreview.orchestrator.reconciler import deduplicate_citations, strip_dangling_markers
from litreview.orchestrator.research_executor import ResearchExecutor
from litreview.orchestrator.structurer import OutputStructurer

logger = logging.getLogger(__name__)

PROVENANCE = "agentic-flow-claude-perplexity"


def _preview(text: str, length: int = 100) -> str:
    return text if len(text) <= length else text[:length] + "..."


class DeepResearchAgent:
    """Runs the two-capability research pipeline and reports progress."""

    def __init__(
        self,
        chat: ChatCompletion,
        search: SearchAnswer,
        broadcaster: ProgressBroadcaster | None = None,
        *,
        chat_model: str | None = None,
        research_model: str | None = None,
    ) -> None:
        self.optimizer = QueryOptimizer(chat, model=chat_model)
        self.executor = ResearchExecutor(search, model=research_model)
        self.structurer = OutputStructurer(chat, model=chat_model)
        self.broadcaster = broadcaster or NullBroadcaster()

    async def run(self, topic: str, options: ResearchOptions | None = None) -> ResearchSummary:
        """Research ``topic``. Raises DeepResearchError if the research call fails."""
        options = options or ResearchOptions(use_deep_research=True)
        logger.info('Starting deep research on topic: "%s"', topic)
        try:
            await self._emit(Stage.STARTING, f'Starting deep research on: "{topic}"')

            await self._emit(Stage.QUERY_GENERATION, "Generating optimized research query...")
            outcome = await self.optimizer.optimize(topic)
            await self._emit(
                Stage.QUERY_COMPLETE,
                "Using original topic as research query"
                if outcome.fallback
                else "Research query optimized successfully",
                {"query_preview": _preview(outcome.query), "fallback": outcome.fallback},
            )

            await self._emit(Stage.RESEARCH, "Performing deep research...")
            research = await self.executor.execute(outcome.query, options)
            reconciled = deduplicate_citations(
                normalize_citations(research.citation_urls), research.content
            )
            research_data: dict[str, Any] = {
                "citations_count": len(research.citation_urls),
                "unique_citations_count": len(reconciled.citations),
                "content_preview": _preview(research.content),
            }
            if research.reasoning_trace:
                research_data["reasoning_preview"] = _preview(research.reasoning_trace, 500)
            await self._emit(
                Stage.RESEARCH_COMPLETE, "Research data collected successfully", research_data
            )

            await self._emit(Stage.FORMATTING, "Formatting research summary...")
            structured = await self.structurer.structure(
                topic, outcome.query, reconciled.content, reconciled.citations
            )
            summary = ResearchSummary(
                title=structured.title,
                content=strip_dangling_markers(structured.content, len(reconciled.citations)),
                citations=reconciled.citations,
                model_used=PROVENANCE,
                reasoning_trace=research.reasoning_trace,
            )
            await self._emit(
                Stage.COMPLETE,
                "Research summary generated successfully",
                {
                    "title": summary.title,
                    "citations_count": len(summary.citations),
                    "formatted": not structured.fallback,
                },
            )
            return summary
        except Exception as exc:
            logger.exception("Deep research pipeline failed")
            await self._emit(Stage.ERROR, f"Error: {exc}")
            raise DeepResearchError(exc) from exc

    async def _emit(self, stage: Stage, message: str, data: dict[str, Any] | None = None) -> None:
        try:
            await self.broadcaster.publish(ProgressEvent.for_stage(stage, message, data))
        except Exception as exc:
            logger.warning("Failed to broadcast %s progress: %s", stage.value, exc)


async def run_deep_research(
    topic: str,
    options: ResearchOptions | None = None,
    *,
    chat: ChatCompletion | None = None,
    search: SearchAnswer | None = None,
    broadcaster: ProgressBroadcaster | None = None,
) -> ResearchSummary:
    """Entry point: build the agent from settings unless collaborators are given."""
    if chat is None:
        from litreview.backends.claude import ClaudeChat

        chat = ClaudeChat()
    if search is None:
        from litreview.backends.perplexity import PerplexitySearch

        search = PerplexitySearch()
    agent = DeepResearchAgent(chat, search, broadcaster)
    return await agent.run(topic, options)
