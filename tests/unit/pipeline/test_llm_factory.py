# tests/unit/pipeline/test_llm_factory.py — v2
"""Tests for pipeline/llm_factory.py — per-role clients cached by provider."""

from __future__ import annotations

import dataclasses

import httpx
import pytest

from transcriptflow.llm.adapters.claude_adapter import ClaudeAdapter
from transcriptflow.llm.adapters.openai_adapter import OpenAIAdapter
from transcriptflow.pipeline.llm_factory import LLMFactory


class TestLLMFactory:
    def test_role_to_adapter(self, pipeline_config):
        factory = LLMFactory(pipeline_config)
        assert isinstance(factory.get_client("summarizer"), ClaudeAdapter)
        assert isinstance(factory("consolidator"), OpenAIAdapter)

    def test_shared_provider_reuses_client(self, pipeline_config):
        factory = LLMFactory(pipeline_config)
        assert factory("consolidator") is factory("materializer")

    def test_unknown_role(self, pipeline_config):
        with pytest.raises(KeyError):
            LLMFactory(pipeline_config).get_client("translator")

    def test_generation_settings_applied(self, pipeline_config):
        config = dataclasses.replace(pipeline_config, max_tokens=123)
        client = LLMFactory(config)("summarizer")
        assert client._build_payload("", "hi")["max_tokens"] == 123

    @pytest.mark.asyncio
    async def test_aclose_keeps_shared_http_client(self, pipeline_config):
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        factory = LLMFactory(pipeline_config, http_client=http)
        factory("summarizer")
        await factory.aclose()
        assert not http.is_closed
        await http.aclose()
