# src/llm/models.py — v2
"""LLM-specific types: AuthStyle, ProviderConfig, LLMResponse."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AuthStyle(str, Enum):
    """How a backend expects its API key to be presented."""

    BEARER = "bearer"
    CUSTOM_HEADER = "custom_header"
    NATIVE_KEY = "native_key"


# Header used for each non-bearer style.
AUTH_HEADERS: dict[AuthStyle, str] = {
    AuthStyle.CUSTOM_HEADER: "x-api-key",
    AuthStyle.NATIVE_KEY: "x-goog-api-key",
}


class ProviderConfig(BaseModel):
    """Immutable connection record for one backend.

    Resolved once at startup and passed to adapter constructors.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    base_url: str
    api_key: str = Field(repr=False)
    model_id: str
    auth_style: AuthStyle = AuthStyle.BEARER

    def auth_headers(self) -> dict[str, str]:
        """Return the authentication header(s) for this backend."""
        if self.auth_style is AuthStyle.BEARER:
            return {"Authorization": f"Bearer {self.api_key}"}
        return {AUTH_HEADERS[self.auth_style]: self.api_key}

    @property
    def has_key(self) -> bool:
        return bool(self.api_key.strip())


class LLMResponse(BaseModel):
    """Normalized response from any provider."""

    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str
    provider: str
    latency_ms: int = 0
    raw_response: Any = None
