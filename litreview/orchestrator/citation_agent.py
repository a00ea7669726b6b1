"""Citation agent — finds original sources for the factual claims in a text."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field

from litreview.backends.base import ChatCompletion, SearchAnswer
from litreview.config import settings
from litreview.errors import CitationEnhancementError, ExternalServiceError
from litreview.models.citation import Citation

logger = logging.getLogger(__name__)

CLAIMS_PROMPT = """\
I want to identify factual claims in the following text that would benefit from academic citations.
Please identify statements that:
1. Make factual claims about research findings
2. Present statistics or data
3. Describe scientific consensus or established knowledge
4. Reference specific studies or research

For each claim, provide:
- The exact text of the claim
- The start and end character indices of the claim in the original text

Respond in this JSON format:
{{
  "claims": [
    {{"text": "exact text of the claim", "startIndex": 0, "endIndex": 10}}
  ]
}}

Here's the text:

{text}\
"""

SOURCE_SEARCH_PROMPT = """\
You are an academic citation assistant. Your goal is to find the ORIGINAL research papers \
that first discovered or established the fact in the claim.
Do not cite review papers or secondary sources unless absolutely necessary. Focus on finding \
primary research articles.
For each source, provide: full title, author list, publication year, journal name, DOI or URL, \
and whether it's original research or a review/secondary source.
Respond in JSON format only.\
"""

SOURCE_EXTRACTION_PROMPT = """\
Analyze these search results about the claim: "{claim}"

Search results:
{results}

Extract and filter the sources to identify only original research papers (not reviews or secondary sources).

Return your analysis in this JSON format:
{{
  "sources": [
    {{
      "title": "paper title",
      "authors": ["author1", "author2"],
      "year": "publication year",
      "journal": "journal name",
      "url": "URL if available",
      "doi": "DOI if available",
      "isOriginalResearch": true
    }}
  ]
}}

Return the JSON object only with no other text.\
"""

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


@dataclass
class Claim:
    text: str
    start_index: int
    end_index: int


@dataclass
class SourceRecord:
    title: str
    authors: list[str] = field(default_factory=list)
    year: str = ""
    journal: str = ""
    url: str = ""
    doi: str = ""
    is_original_research: bool = False

    def to_citation(self) -> Citation:
        authors = ", ".join(self.authors)
        year = self.year or "n.d."
        text = f"{authors} ({year}). {self.title}."
        if self.journal:
            text += f" {self.journal}."
        return Citation(authors=f"{authors} ({year})", text=text, url=self.url or self.doi or None)


@dataclass
class EnhancedText:
    original_text: str
    enhanced_text: str
    citations: list[Citation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "original_text": self.original_text,
            "enhanced_text": self.enhanced_text,
            "citations": [c.to_dict() for c in self.citations],
        }


def parse_json_object(text: str) -> dict:
    """Parse the outermost JSON object in ``text`` (tolerates code fences and prose)."""
    match = _JSON_OBJECT.search(text or "")
    if not match:
        raise ValueError("no JSON object in response")
    data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError("response JSON is not an object")
    return data


class CitationAgent:
    """Inserts ``[n]`` markers after claims, backed by sources found per claim."""

    def __init__(self, chat: ChatCompletion, search: SearchAnswer) -> None:
        self.chat = chat
        self.search = search

    async def enhance(self, text: str) -> EnhancedText:
        logger.info("Starting citation enhancement for text of length %d", len(text))
        try:
            claims = await self.identify_claims(text)
            logger.info("Identified %d claims needing citations", len(claims))

            enhanced = text
            offset = 0
            citations: list[Citation] = []
            for claim in sorted(claims, key=lambda c: c.end_index):
                sources = await self.find_sources(claim.text)
                if not sources:
                    continue
                first = len(citations) + 1
                citations.extend(source.to_citation() for source in sources)
                markers = "".join(f"[{n}]" for n in range(first, len(citations) + 1))
                position = claim.end_index + offset
                enhanced = enhanced[:position] + markers + enhanced[position:]
                offset += len(markers)
        except Exception as exc:
            logger.exception("Citation enhancement failed")
            raise CitationEnhancementError("Failed to enhance text with citations") from exc

        return EnhancedText(original_text=text, enhanced_text=enhanced, citations=citations)

    async def identify_claims(self, text: str) -> list[Claim]:
        """Ask the chat model for citable claims. Any failure yields no claims."""
        try:
            raw = await self.chat.complete(
                "You identify factual claims that need academic citations.",
                CLAIMS_PROMPT.format(text=text),
                max_tokens=16000,
                temperature=0.0,
            )
            data = parse_json_object(raw)
        except (ExternalServiceError, ValueError) as exc:
            logger.warning("Claim identification failed: %s", exc)
            return []

        claims: list[Claim] = []
        for item in data.get("claims") or []:
            try:
                claim = Claim(
                    text=str(item["text"]),
                    start_index=int(item["startIndex"]),
                    end_index=int(item["endIndex"]),
                )
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed claim: %r", item)
                continue
            if 0 <= claim.start_index <= claim.end_index <= len(text):
                claims.append(claim)
        return claims

    async def find_sources(self, claim: str) -> list[SourceRecord]:
        """Search for primary sources, then have the chat model extract them."""
        try:
            result = await self.search.answer(
                f'Find the original academic sources for this claim: "{claim}". '
                "Return the 3 most relevant sources in JSON format.",
                model=settings.search_model,
                max_tokens=8000,
                temperature=0.1,
                system_prompt=SOURCE_SEARCH_PROMPT,
            )
            raw = await self.chat.complete(
                "You extract structured bibliographic records from search results.",
                SOURCE_EXTRACTION_PROMPT.format(claim=claim, results=result.content),
                max_tokens=16000,
                temperature=0.0,
            )
            data = parse_json_object(raw)
        except (ExternalServiceError, ValueError) as exc:
            logger.warning("Source lookup failed for claim %r: %s", claim[:50], exc)
            return []

        sources: list[SourceRecord] = []
        for item in data.get("sources") or []:
            if not isinstance(item, dict) or not item.get("title"):
                continue
            authors = item.get("authors") or []
            if isinstance(authors, str):
                authors = [authors]
            sources.append(
                SourceRecord(
                    title=str(item["title"]).strip(),
                    authors=[str(a) for a in authors],
                    year=str(item.get("year") or ""),
                    journal=str(item.get("journal") or ""),
                    url=str(item.get("url") or ""),
                    doi=str(item.get("doi") or ""),
                    is_original_research=bool(item.get("isOriginalResearch")),
                )
            )
        logger.info("Found %d sources for claim: %r", len(sources), claim[:50])
        return sources
