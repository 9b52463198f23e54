# src/llm/client_factory.py — v4
"""Factory: instantiate an LLM client from a resolved ProviderConfig.

Called once per role at startup (see pipeline/llm_factory.py).
"""

from __future__ import annotations

import importlib
import logging

import httpx

from transcriptflow.llm.base_client import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_S,
    BaseLLMClient,
)
from transcriptflow.llm.models import ProviderConfig

logger = logging.getLogger(__name__)

# Registry of provider name → adapter class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "claude": "transcriptflow.llm.adapters.claude_adapter.ClaudeAdapter",
    "gpt": "transcriptflow.llm.adapters.openai_adapter.OpenAIAdapter",
    "gemini": "transcriptflow.llm.adapters.gemini_adapter.GeminiAdapter",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def create_llm_client(
    config: ProviderConfig,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    temperature: float = DEFAULT_TEMPERATURE,
    http_client: httpx.AsyncClient | None = None,
) -> BaseLLMClient:
    """Instantiate the adapter registered for ``config.name``.

    Args:
        config: Resolved provider configuration.
        timeout_s: Per-request timeout.
        max_tokens: Generation cap.
        temperature: Sampling temperature.
        http_client: Optional pre-built httpx client (shared or mocked).

    Returns:
        Configured BaseLLMClient instance.

    Raises:
        UnsupportedProviderError: If the provider is not registered.
    """
    if config.name not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {config.name!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    adapter_cls = _import_class(_PROVIDER_REGISTRY[config.name])
    logger.debug("Creating LLM client: provider=%s, model=%s", config.name, config.model_id)
    return adapter_cls(
        config,
        timeout_s=timeout_s,
        max_tokens=max_tokens,
        temperature=temperature,
        http_client=http_client,
    )


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
