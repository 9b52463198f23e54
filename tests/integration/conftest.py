# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests.

The whole stack (adapters, retry, stages, runner, storage) runs for real;
only the network is replaced by an httpx.MockTransport that speaks the
Messages API on claude.test and chat completions everywhere else.
"""

from __future__ import annotations

import json
from collections import defaultdict
from dataclasses import replace

import httpx
import pytest
import pytest_asyncio

from transcriptflow.config.pipeline_config import PipelineConfig


def _summary_payload(user_prompt: str) -> str:
    chunk_id = "?"
    for line in user_prompt.splitlines():
        if line.startswith("Chunk ID:"):
            chunk_id = line.split(":", 1)[1].strip()
    return json.dumps({
        "title": f"Section {chunk_id}",
        "summary": f"What section {chunk_id} covers.",
        "key_points": [f"Point from section {chunk_id}"],
        "definitions": [],
        "confidence": "high",
    })


class FakeProviders:
    """MockTransport handler standing in for every provider backend.

    ``fail(host, *statuses)`` queues error responses served before the
    normal replies for that host.
    """

    def __init__(self) -> None:
        self.requests: dict[str, list[httpx.Request]] = defaultdict(list)
        self._failures: dict[str, list[int]] = defaultdict(list)

    def fail(self, host: str, *statuses: int) -> None:
        self._failures[host].extend(statuses)

    def count(self, host: str) -> int:
        return len(self.requests[host])

    def __call__(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        self.requests[host].append(request)
        if self._failures[host]:
            status = self._failures[host].pop(0)
            return httpx.Response(status, json={"error": {"message": f"scripted {status}"}})

        body = json.loads(request.content)
        if host == "claude.test":
            user_prompt = body["messages"][0]["content"]
            return httpx.Response(200, json={
                "model": body["model"],
                "content": [{"type": "text", "text": _summary_payload(user_prompt)}],
                "usage": {"input_tokens": 900, "output_tokens": 150},
            })

        user_prompt = body["messages"][-1]["content"]
        if user_prompt.startswith("Chunk ID:"):
            text = _summary_payload(user_prompt)
        elif "flashcards" in user_prompt.lower():
            text = "## Card 1\nQ: What is a router?\nA: A packet forwarder."
        else:
            text = "# Master Notes\n\n## Overview\nEverything in one place."
        return httpx.Response(200, json={
            "model": body["model"],
            "choices": [{"index": 0, "message": {"role": "assistant", "content": text}}],
            "usage": {"prompt_tokens": 1200, "completion_tokens": 400},
        })


@pytest.fixture
def fake_providers() -> FakeProviders:
    return FakeProviders()


@pytest_asyncio.fixture
async def http_client(fake_providers):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_providers))
    yield client
    await client.aclose()


@pytest.fixture
def mixed_config(pipeline_config: PipelineConfig) -> PipelineConfig:
    """One role per provider so every adapter is exercised."""
    return replace(
        pipeline_config,
        roles={"summarizer": "claude", "consolidator": "gpt", "materializer": "gemini"},
    )
