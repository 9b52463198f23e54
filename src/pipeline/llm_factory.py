# src/pipeline/llm_factory.py — v2
"""LLM factory: one client per stage role, resolved from PipelineConfig.

Clients are cached by provider name so roles sharing a provider reuse a
single client (and its connection pool).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from transcriptflow.llm.client_factory import create_llm_client

if TYPE_CHECKING:
    from transcriptflow.config.pipeline_config import PipelineConfig
    from transcriptflow.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)


class LLMFactory:
    """Create and cache LLM clients per role.

    Args:
        config: Frozen pipeline configuration.
        http_client: Optional shared httpx client (tests pass a MockTransport one).
    """

    def __init__(self, config: PipelineConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._http_client = http_client
        self._clients: dict[str, BaseLLMClient] = {}

    def get_client(self, role: str) -> BaseLLMClient:
        """Get or create the client serving a role.

        Raises:
            KeyError: If the role has no provider assignment.
        """
        provider_config = self._config.provider_for(role)
        name = provider_config.name

        if name not in self._clients:
            self._clients[name] = create_llm_client(
                provider_config,
                timeout_s=self._config.timeout_s,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
                http_client=self._http_client,
            )
            logger.info(
                "Created LLM client for '%s': %s:%s", role, name, provider_config.model_id,
            )
        else:
            logger.debug("Reusing cached LLM client for '%s': %s", role, name)

        return self._clients[name]

    def __call__(self, role: str) -> BaseLLMClient:
        return self.get_client(role)

    async def aclose(self) -> None:
        """Close every client created by this factory."""
        for client in self._clients.values():
            await client.aclose()
        self._clients.clear()
