"""Perplexity Sonar backend — OpenAI-compatible chat completions with citations."""

from __future__ import annotations

import logging

import httpx

from litreview.backends.base import SearchResult, wrap_http_error
from litreview.config import settings
from litreview.errors import MalformedResponseError

logger = logging.getLogger(__name__)

PERPLEXITY_API_URL = "https://api.perplexity.ai/chat/completions"

SYSTEM_PROMPT = (
    "You are a research assistant providing detailed information. "
    "Include citations to all sources."
)


class PerplexitySearch:
    """Search-augmented answering capability backed by Perplexity Sonar."""

    name: str = "Perplexity"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.perplexity_api_key
        self.model = model or settings.search_model
        self.timeout = timeout or settings.research_timeout

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
        """Run a single completion. Never retried: every call is billed."""
        model = model or self.model
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt or SYSTEM_PROMPT},
                {"role": "user", "content": query},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": False,
            "return_images": False,
        }
        if domain_filter:
            payload["search_domain_filter"] = list(domain_filter)

        logger.info("Perplexity query: model=%s, query length=%d", model, len(query))
        timeout = httpx.Timeout(self.timeout, connect=30.0)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(
                    PERPLEXITY_API_URL,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise wrap_http_error(self.name, exc) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError(self.name, "response body is not JSON") from exc
        return self._parse_response(data, model)

    def _parse_response(self, data: dict, requested_model: str) -> SearchResult:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedResponseError(self.name, "invalid response: no choices") from exc
        if not isinstance(content, str):
            raise MalformedResponseError(self.name, "invalid response: content is not text")

        citations = data.get("citations") or []
        if not isinstance(citations, list):
            logger.warning("Perplexity: ignoring non-list citations field")
            citations = []
        return SearchResult(
            content=content,
            citation_urls=[str(url) for url in citations if url],
            model=data.get("model") or requested_model,
        )
