# src/llm/key_check.py — v1
"""Live API key check: one tiny request per configured provider."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from transcriptflow.llm.base_client import BaseLLMClient
from transcriptflow.llm.errors import (
    AuthError,
    InvalidRequestError,
    ProviderError,
    RateLimitError,
    TransportError,
)
from transcriptflow.llm.models import ProviderConfig

logger = logging.getLogger(__name__)

TEST_SYSTEM_PROMPT = "You are a connectivity check. Answer with one word."
TEST_USER_PROMPT = "Reply with OK."


@dataclass
class KeyCheckResult:
    provider: str
    model: str
    working: bool
    detail: str = ""
    hint: str = ""


def remediation_hint(error: Exception, provider: str) -> str:
    """Actionable next step for a failed check."""
    env_var = {"claude": "CLAUDE_API_KEY", "gpt": "OPENAI_API_KEY", "gemini": "GEMINI_API_KEY"}.get(
        provider, f"{provider.upper()}_API_KEY",
    )
    if isinstance(error, AuthError):
        if error.status_code == 403:
            return "Access forbidden. Check the key's permissions and billing status."
        return f"Invalid API key. Please check your {env_var}."
    if isinstance(error, RateLimitError):
        return "Rate limit exceeded. Please wait and try again."
    if isinstance(error, TransportError):
        return "Request timed out or could not connect. Check your internet connection and the API base URL."
    if isinstance(error, InvalidRequestError):
        return "Request rejected. Check the configured model name and API base URL."
    return "Unexpected provider error. Retry later or check the provider's status page."


async def check_keys(
    providers: dict[str, ProviderConfig],
    client_factory: Callable[[ProviderConfig], BaseLLMClient],
) -> list[KeyCheckResult]:
    """Send one test prompt per provider that has a key (no retries).

    Args:
        providers: Provider configurations by name.
        client_factory: Builds a client for a ProviderConfig.
    """
    results: list[KeyCheckResult] = []
    for name, config in providers.items():
        if not config.has_key:
            logger.debug("Skipping %s: no API key configured", name)
            continue

        client = client_factory(config)
        try:
            reply = await client.generate(TEST_SYSTEM_PROMPT, TEST_USER_PROMPT)
        except ProviderError as exc:
            logger.warning("%s key check failed: %s", name, exc)
            results.append(KeyCheckResult(
                provider=name, model=config.model_id, working=False,
                detail=str(exc), hint=remediation_hint(exc, name),
            ))
        else:
            results.append(KeyCheckResult(
                provider=name, model=config.model_id, working=True,
                detail=reply.strip()[:40],
            ))
        finally:
            await client.aclose()
    return results
