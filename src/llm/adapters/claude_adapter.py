# src/llm/adapters/claude_adapter.py — v1
"""Anthropic Claude adapter (Messages API)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from transcriptflow.llm.base_client import BaseLLMClient
from transcriptflow.llm.errors import MalformedResponseError
from transcriptflow.llm.models import LLMResponse

ANTHROPIC_VERSION = "2023-06-01"


class _TextBlock(BaseModel):
    type: str = "text"
    text: str


class _Usage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class _MessagesResponse(BaseModel):
    """Subset of the Messages API response we rely on."""

    content: list[_TextBlock] = Field(min_length=1)
    model: str | None = None
    usage: _Usage = Field(default_factory=_Usage)


class ClaudeAdapter(BaseLLMClient):
    """Adapter for Anthropic Claude models."""

    @property
    def provider_name(self) -> str:
        return "claude"

    def _endpoint(self) -> str:
        return f"{self._config.base_url.rstrip('/')}/messages"

    def _extra_headers(self) -> dict[str, str]:
        return {"anthropic-version": ANTHROPIC_VERSION}

    def _build_payload(self, system_prompt: str, user_prompt: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self._max_tokens,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if system_prompt:
            payload["system"] = system_prompt
        return payload

    def _parse_response(self, data: Any, latency_ms: int) -> LLMResponse:
        """Read ``content[0].text``."""
        try:
            parsed = _MessagesResponse.model_validate(data)
        except ValidationError as exc:
            raise MalformedResponseError(
                f"Unexpected Claude response format: {exc.errors()[0]['msg']}",
                provider=self.provider_name,
                status_code=200,
            ) from exc

        return LLMResponse(
            content=parsed.content[0].text,
            input_tokens=parsed.usage.input_tokens,
            output_tokens=parsed.usage.output_tokens,
            model=parsed.model or self.model,
            provider=self.provider_name,
            latency_ms=latency_ms,
            raw_response=data,
        )
