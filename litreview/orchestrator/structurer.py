"""Output structurer — reformats research prose into a titled, cited article."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from litreview.backends.base import ChatCompletion
from litreview.errors import ExternalServiceError, MalformedResponseError
from litreview.models.citation import Citation

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are an expert academic editor that structures research content into proper academic format.
Your task is to take raw research content and organize it into a well-structured paper introduction with:
1. A clear, informative title on the first line, formatted as a markdown heading ("# Title")
2. Well-organized paragraphs with logical flow
3. Proper integration of citations using the format [n] where n is the citation number
4. Academic tone and language

Citation rules:
- There are exactly {count} citations. Only use the numbers {allowed}.
- Never invent citations and never use a number that is not in the list.
- Do not skip numbers that the research content already uses.
- Do not add a References, Bibliography or Sources section; the reference list is rendered separately.

Format the content cleanly with proper paragraphs and spacing.\
"""

USER_TEMPLATE = """\
Please structure the following research content into a proper academic paper introduction.

Original topic: "{topic}"
Query used: "{query}"

CONTENT FROM RESEARCH:
{content}

AVAILABLE CITATIONS:
{citations}

Please format this as a professional academic paper introduction with proper citation integration.\
"""

_TITLE_LINE = re.compile(r"\s*#{1,2}[ \t]+(.+?)[ \t]*#*[ \t]*(?:\n|\Z)")

_SECTION_NAMES = r"(?:references|bibliography|sources|works cited|citations)"

_REFERENCES_HEADING = re.compile(
    r"^[ \t]*(?:"
    rf"#{{1,6}}[ \t]*(?:\*\*)?{_SECTION_NAMES}:?(?:\*\*)?:?[ \t]*#*"
    rf"|\*\*{_SECTION_NAMES}:?\*\*:?"
    rf"|{_SECTION_NAMES}:?"
    rf"|<h[1-6][^>]*>\s*{_SECTION_NAMES}:?\s*</h[1-6]>[^\n]*"
    r")[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)


@dataclass
class StructuredOutput:
    """Title and body, and whether they are the unformatted fallback."""

    title: str
    content: str
    fallback: bool = False
    error: str | None = None


def fallback_title(topic: str) -> str:
    return "Research on " + topic


def format_reference_block(citations: list[Citation]) -> str:
    """Enumerate citations as ``[i] url`` lines, 1-based."""
    lines = []
    for i, citation in enumerate(citations, 1):
        lines.append(f"[{i}] {citation.url or citation.text}")
    return "\n".join(lines)


def split_title(text: str) -> tuple[str | None, str]:
    """Pull a leading heading line out of ``text``."""
    match = _TITLE_LINE.match(text)
    if not match:
        return None, text.strip()
    body = (text[: match.start()] + text[match.end():]).strip()
    return match.group(1).strip(), body


def strip_references_section(text: str) -> str:
    """Drop a trailing References-style section emitted despite instructions."""
    match = _REFERENCES_HEADING.search(text)
    if not match:
        return text
    logger.info("Stripping references section emitted by the model")
    return text[: match.start()].rstrip()


class OutputStructurer:
    """Second chat call: title + body constrained to the supplied citation numbers."""

    def __init__(
        self,
        chat: ChatCompletion,
        model: str | None = None,
        max_tokens: int = 16000,
        temperature: float = 0.2,
    ) -> None:
        self.chat = chat
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def structure(
        self,
        topic: str,
        query: str,
        content: str,
        citations: list[Citation],
    ) -> StructuredOutput:
        """Format ``content``; fall back to it unchanged if the call fails."""
        try:
            raw_text = await self.chat.complete(
                self.build_system_prompt(len(citations)),
                USER_TEMPLATE.format(
                    topic=topic,
                    query=query,
                    content=content,
                    citations=format_reference_block(citations),
                ),
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            if not isinstance(raw_text, str):
                raise MalformedResponseError(self.chat.name, "non-text structured output")
            if not raw_text.strip():
                raise MalformedResponseError(self.chat.name, "empty structured output")
        except ExternalServiceError as exc:
            logger.error("Structuring failed, falling back to raw content: %s", exc)
            return StructuredOutput(
                title=fallback_title(topic),
                content=content,
                fallback=True,
                error=str(exc),
            )

        title, body = split_title(strip_references_section(raw_text.strip()))
        if not body:
            logger.warning("Structured output had no body, keeping raw content")
            return StructuredOutput(
                title=title or fallback_title(topic), content=content, fallback=True
            )
        return StructuredOutput(title=title or fallback_title(topic), content=body)

    def build_system_prompt(self, count: int) -> str:
        if count == 0:
            allowed = "(none)"
        elif count == 1:
            allowed = "[1]"
        else:
            allowed = f"[1] to [{count}]"
        return SYSTEM_PROMPT.format(count=count, allowed=allowed)
