"""Claude chat backend — Anthropic Messages API via httpx."""

from __future__ import annotations

import logging

import httpx

from litreview.backends.base import wrap_http_error
from litreview.config import settings
from litreview.errors import MalformedResponseError

logger = logging.getLogger(__name__)

ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"


class ClaudeChat:
    """Chat-completion capability backed by Anthropic's Claude API."""

    name: str = "Claude"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.anthropic_api_key
        self.model = model or settings.chat_model
        self.timeout = timeout or settings.chat_timeout

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        *,
        model: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.2,
    ) -> str:
        """Send one system + user exchange and return the first text block."""
        model = model or self.model
        logger.debug("Claude request: model=%s, max_tokens=%d", model, max_tokens)
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    ANTHROPIC_API_URL,
                    headers={
                        "x-api-key": self.api_key,
                        "anthropic-version": "2023-06-01",
                        "content-type": "application/json",
                    },
                    json={
                        "model": model,
                        "max_tokens": max_tokens,
                        "temperature": temperature,
                        "system": system_prompt,
                        "messages": [{"role": "user", "content": user_message}],
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise wrap_http_error(self.name, exc) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError(self.name, "response body is not JSON") from exc
        return self._extract_text(data)

    def _extract_text(self, data: dict) -> str:
        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            raise MalformedResponseError(self.name, "response has no content blocks")
        for block in blocks:
            if isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text")
                if not isinstance(text, str):
                    raise MalformedResponseError(self.name, "text block is not a string")
                return text
        raise MalformedResponseError(self.name, "response has no text block")
