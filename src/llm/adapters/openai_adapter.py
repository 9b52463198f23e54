# src/llm/adapters/openai_adapter.py — v2
"""OpenAI chat-completions adapter.

Also the base for any OpenAI-compatible backend (see gemini_adapter.py).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from transcriptflow.llm.base_client import BaseLLMClient
from transcriptflow.llm.errors import MalformedResponseError
from transcriptflow.llm.models import LLMResponse


class _Message(BaseModel):
    role: str = "assistant"
    content: str


class _Choice(BaseModel):
    message: _Message


class _Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0


class _ChatCompletion(BaseModel):
    """Subset of the chat-completions response we rely on."""

    choices: list[_Choice] = Field(min_length=1)
    model: str | None = None
    usage: _Usage | None = None


class OpenAIAdapter(BaseLLMClient):
    """OpenAI GPT adapter."""

    @property
    def provider_name(self) -> str:
        return "openai"

    def _endpoint(self) -> str:
        return f"{self._config.base_url.rstrip('/')}/chat/completions"

    def _build_payload(self, system_prompt: str, user_prompt: str) -> dict[str, Any]:
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})
        return {
            "model": self.model,
            "messages": messages,
            "temperature": self._temperature,
        }

    def _parse_response(self, data: Any, latency_ms: int) -> LLMResponse:
        """Read ``choices[0].message.content``."""
        try:
            parsed = _ChatCompletion.model_validate(data)
        except ValidationError as exc:
            raise MalformedResponseError(
                f"Unexpected {self.provider_name} response format: "
                f"{exc.errors()[0]['msg']}",
                provider=self.provider_name,
                status_code=200,
            ) from exc

        usage = parsed.usage or _Usage()
        return LLMResponse(
            content=parsed.choices[0].message.content,
            input_tokens=usage.prompt_tokens,
            output_tokens=usage.completion_tokens,
            model=parsed.model or self.model,
            provider=self.provider_name,
            latency_ms=latency_ms,
            raw_response=data,
        )
