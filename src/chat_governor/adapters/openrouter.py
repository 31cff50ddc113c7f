"""OpenAI-compatible chat-completions adapter for conversation summaries.

Purpose
-------
Implement :class:`SummaryGeneratorPort` against OpenRouter (or any endpoint
speaking the ``/chat/completions`` dialect) using :mod:`httpx`.

Contents
--------
* :class:`OpenRouterSummaryGenerator` - async adapter with an optional injected
  client.

System Role
-----------
Outermost adapter of the windowing path. Every provider problem is translated
into :class:`ExternalCallError`; :class:`ContextWindower` absorbs it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from chat_governor.application.ports.summary import SummaryGeneratorPort
from chat_governor.domain.errors import ExternalCallError

LOGGER = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "anthropic/claude-sonnet-4.5"


class OpenRouterSummaryGenerator(SummaryGeneratorPort):
    """Generate summaries through an OpenAI-compatible HTTP API."""

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        api_base: str = DEFAULT_API_BASE,
        client: httpx.AsyncClient | None = None,
        request_timeout: float | None = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Configure credentials, model and transport.

        Parameters
        ----------
        api_key:
            Bearer token; ``None`` makes every call fail with
            :class:`ExternalCallError` instead of hitting the network.
        client:
            Optional shared client, used as is. When omitted the adapter owns
            its clients: one per event loop, created on first use inside that
            loop and replaced when a later call runs in a different loop
            (each ``asyncio.run`` starts a new one).
        transport:
            Transport handed to owned clients.
        """
        self._api_key = api_key
        self._model = model
        self._endpoint = api_base.rstrip("/") + "/chat/completions"
        self._owns_client = client is None
        self._client = client
        self._client_loop: asyncio.AbstractEventLoop | None = None
        self._request_timeout = request_timeout
        self._transport = transport

    @property
    def model(self) -> str:
        return self._model

    @property
    def owns_client(self) -> bool:
        return self._owns_client

    async def generate_summary(self, system_instruction: str, prompt: str, max_output_tokens: int) -> str:
        if not self._api_key:
            raise ExternalCallError("no API key configured for summary generation")
        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_output_tokens,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        LOGGER.debug("Requesting summary from %s with model %s (%d prompt chars)", self._endpoint, self._model, len(prompt))
        try:
            response = await self._current_client().post(self._endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise ExternalCallError(f"summary request timed out: {exc!r}") from exc
        except httpx.HTTPError as exc:
            raise ExternalCallError(f"summary request failed: {exc!r}") from exc

        if response.status_code >= 400:
            raise ExternalCallError(f"summary provider returned HTTP {response.status_code}")
        try:
            body = response.json()
        except ValueError as exc:
            raise ExternalCallError("summary provider returned invalid JSON") from exc
        return _extract_text(body)

    def _current_client(self) -> httpx.AsyncClient:
        if not self._owns_client:
            return self._client  # type: ignore[return-value]
        loop = asyncio.get_running_loop()
        if self._client is None or self._client_loop is not loop:
            # pooled connections of the previous client belong to a loop that is gone
            self._client = httpx.AsyncClient(timeout=self._request_timeout, transport=self._transport)
            self._client_loop = loop
        return self._client

    async def aclose(self) -> None:
        """Close the owned HTTP client created in the running event loop.

        A client created in another (finished) loop is dropped instead; its
        connections cannot be closed from here.
        """

        if not self._owns_client or self._client is None:
            return
        client, loop = self._client, self._client_loop
        self._client = None
        self._client_loop = None
        if loop is asyncio.get_running_loop():
            await client.aclose()


def _extract_text(body: Any) -> str:
    """Return the first choice's message content from a completions payload."""

    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ExternalCallError("summary provider payload has no message content") from exc
    if isinstance(content, list):
        content = "".join(part.get("text", "") for part in content if isinstance(part, dict) and part.get("type") == "text")
    if not isinstance(content, str):
        raise ExternalCallError("summary provider returned non-text content")
    return content.strip()


__all__ = ["DEFAULT_API_BASE", "DEFAULT_MODEL", "OpenRouterSummaryGenerator"]
