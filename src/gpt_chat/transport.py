"""Request/response transport to an OpenAI-compatible chat completions endpoint."""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol

import httpx

from .exceptions import MalformedResponseError, TransportError
from .models import HistoryItem

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT_SECONDS = 60


class ChatTransport(Protocol):
    """One outbound completion request per call.

    Implementations return the completion text or raise ``TransportError``.
    """

    async def complete(self, history: list[HistoryItem], credential: str) -> str:
        ...


def _extract_error_detail(response: httpx.Response) -> str:
    """Return a readable error description from a failed response.

    OpenAI-style bodies look like ``{"error": {"message": ..., "type": ...}}``;
    anything else falls back to the raw text, truncated.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] if response.text else response.reason_phrase
    if isinstance(body, dict) and "error" in body:
        err = body["error"]
        if isinstance(err, dict):
            return f"[{err.get('type', 'error')}] {err.get('message', str(err))}"
        return str(err)
    return response.text[:500]


def _parse_completion(body: Any) -> str:
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise MalformedResponseError(
            "Completion response did not contain choices[0].message.content."
        ) from exc
    if not isinstance(content, str):
        raise MalformedResponseError("Completion content is not a string.")
    return content


class OpenAITransport:
    """Send the full conversation context and return a single completion.

    Generation parameters are fixed per instance. No streaming and no
    retries: a failed call is reported once to the caller.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def build_payload(self, history: list[HistoryItem]) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": item["role"], "content": item["content"]} for item in history
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    async def complete(self, history: list[HistoryItem], credential: str) -> str:
        payload = self.build_payload(history)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {credential}",
        }
        started = time.monotonic()
        try:
            response = await self._client.post(
                self.endpoint, json=payload, headers=headers, timeout=self.timeout
            )
        except httpx.TimeoutException as exc:
            raise self._log_failure(
                TransportError(f"Request to {self.endpoint} timed out."), started
            ) from exc
        except httpx.HTTPError as exc:
            raise self._log_failure(
                TransportError(f"Unable to reach {self.endpoint}: {exc}"), started
            ) from exc

        if not response.is_success:
            raise self._log_failure(
                TransportError(
                    _extract_error_detail(response), status=response.status_code
                ),
                started,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise self._log_failure(
                MalformedResponseError("Completion response is not valid JSON."),
                started,
            ) from exc
        try:
            content = _parse_completion(body)
        except MalformedResponseError as exc:
            raise self._log_failure(exc, started)

        LOGGER.info(
            "transport.request.complete",
            extra={
                "event": "transport.request.complete",
                "model": self.model,
                "messages": len(history),
                "elapsed_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return content

    def _log_failure(self, exc: TransportError, started: float) -> TransportError:
        LOGGER.warning(
            "transport.request.failed",
            extra={
                "event": "transport.request.failed",
                "model": self.model,
                "status": exc.status,
                "error_type": type(exc).__name__,
                "elapsed_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return exc

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
