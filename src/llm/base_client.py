# src/llm/base_client.py — v2
"""Abstract LLM client: one HTTP request per call, classified failures.

Adapters only describe what differs between backends (endpoint, request
envelope, response schema, extra headers). Transport, status mapping and
timing live here so every backend fails the same way.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from transcriptflow.llm.errors import (
    MalformedResponseError,
    TransportError,
    classify_status,
)
from transcriptflow.llm.models import LLMResponse, ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 60.0
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7


class BaseLLMClient(ABC):
    """Unified interface for all text-generation backends.

    Args:
        config: Resolved provider configuration.
        timeout_s: Connect/read/write timeout for each request.
        max_tokens: Generation cap (sent by backends that accept it).
        temperature: Sampling temperature (sent by backends that accept it).
        http_client: Pre-built httpx client (tests inject a MockTransport).
    """

    def __init__(
        self,
        config: ProviderConfig,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._timeout_s = timeout_s
        self._max_tokens = max_tokens
        self._temperature = temperature
        self.__client = http_client
        self._owns_client = http_client is None

    @property
    def _client(self) -> httpx.AsyncClient:
        """Lazy-init HTTP client (only on first call)."""
        if self.__client is None:
            self.__client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout_s))
        return self.__client

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def model(self) -> str:
        return self._config.model_id

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (claude, openai, gemini)."""

    @abstractmethod
    def _endpoint(self) -> str:
        """Full URL the request is posted to."""

    @abstractmethod
    def _build_payload(self, system_prompt: str, user_prompt: str) -> dict[str, Any]:
        """Build the backend's JSON request envelope."""

    @abstractmethod
    def _parse_response(self, data: Any, latency_ms: int) -> LLMResponse:
        """Extract text and usage from a decoded 2xx body.

        Raises:
            MalformedResponseError: If the body does not match the schema.
        """

    def _extra_headers(self) -> dict[str, str]:
        """Backend-specific headers besides authentication."""
        return {}

    async def complete(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        """Send one request and return the normalized response.

        Raises:
            ValueError: If user_prompt is empty.
            ProviderError: Classified failure (see llm/errors.py).
        """
        if not user_prompt or not user_prompt.strip():
            raise ValueError("user_prompt must be a non-empty string")

        url = self._endpoint()
        headers = {
            "Content-Type": "application/json",
            **self._config.auth_headers(),
            **self._extra_headers(),
        }
        payload = self._build_payload(system_prompt or "", user_prompt)

        logger.debug(
            "Request to %s (provider=%s, model=%s)", url, self.provider_name, self.model,
        )
        start = time.monotonic()
        try:
            response = await self._client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"{self.provider_name} request timed out after {self._timeout_s:.0f}s",
                provider=self.provider_name,
            ) from exc
        except httpx.TransportError as exc:
            raise TransportError(
                f"{self.provider_name} connection failed: {exc}",
                provider=self.provider_name,
            ) from exc
        latency_ms = int((time.monotonic() - start) * 1000)

        if not response.is_success:
            raise classify_status(
                response.status_code,
                body=response.text,
                provider=self.provider_name,
                retry_after=response.headers.get("retry-after"),
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"{self.provider_name} returned a non-JSON body: {response.text[:200]!r}",
                provider=self.provider_name,
                status_code=response.status_code,
            ) from exc

        result = self._parse_response(data, latency_ms)
        logger.debug(
            "Response from %s: %d in / %d out tokens, %dms",
            self.provider_name, result.input_tokens, result.output_tokens, latency_ms,
        )
        return result

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Return only the generated text."""
        response = await self.complete(system_prompt, user_prompt)
        return response.content

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self.__client is not None and self._owns_client:
            await self.__client.aclose()
            self.__client = None

    async def __aenter__(self) -> BaseLLMClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
