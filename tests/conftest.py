# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides scripted provider clients, a recording sleep, sample chunks and
summaries, transcripts on disk and a ready PipelineConfig. No network.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import pytest

from transcriptflow.config.pipeline_config import PipelineConfig
from transcriptflow.core.models import ChunkSummary, Definition, TextChunk
from transcriptflow.llm.models import AuthStyle, LLMResponse, ProviderConfig
from transcriptflow.llm.retry import RetryPolicy


# === HELPERS ===


class RecordingSleep:
    """Drop-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ScriptedClient:
    """Provider client stub.

    ``failures`` are raised in order by the first calls; afterwards
    ``reply`` (a string or a callable of the user prompt) is returned.
    """

    def __init__(
        self,
        reply: str | Callable[[str], str] = "ok",
        failures: list[Exception] | None = None,
        provider: str = "claude",
        model: str = "stub-model",
    ) -> None:
        self._reply = reply
        self._failures = list(failures or [])
        self._provider = provider
        self._model = model
        self.calls: list[tuple[str, str]] = []

    @property
    def provider_name(self) -> str:
        return self._provider

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        self.calls.append((system_prompt, user_prompt))
        if self._failures:
            raise self._failures.pop(0)
        content = self._reply(user_prompt) if callable(self._reply) else self._reply
        return LLMResponse(
            content=content,
            input_tokens=1000,
            output_tokens=200,
            model=self._model,
            provider=self._provider,
            latency_ms=5,
        )

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        return (await self.complete(system_prompt, user_prompt)).content

    async def aclose(self) -> None:
        pass


def summary_json(title: str = "Topic", confidence: str = "high") -> str:
    return json.dumps({
        "title": title,
        "summary": f"Summary of {title}.",
        "key_points": ["First point", "Second point"],
        "definitions": [{"term": "Latency", "definition": "Time to first byte"}],
        "confidence": confidence,
    })


def _paragraph(n: int, words: int = 60) -> str:
    return " ".join(f"word{n}_{i}" for i in range(words))


# === FIXTURES: Stubs ===


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_client() -> Callable[..., ScriptedClient]:
    """Factory for ScriptedClient instances."""
    return ScriptedClient


@pytest.fixture
def summary_reply() -> Callable[..., str]:
    return summary_json


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_chunks() -> list[TextChunk]:
    return [
        TextChunk(chunk_id=str(n), title=f"Chunk {n}", text=_paragraph(n), token_estimate=80)
        for n in (1, 2, 3)
    ]


@pytest.fixture
def sample_summaries() -> list[ChunkSummary]:
    return [
        ChunkSummary(
            chunk_id="1",
            title="Networking basics",
            summary="Packets travel through routers.",
            key_points=["Routers forward packets"],
            definitions=[Definition(term="Router", definition="Forwards packets")],
            confidence="high",
        ),
        ChunkSummary(
            chunk_id="2",
            title="Transport layer",
            summary="TCP provides reliable delivery.",
            key_points=["TCP retransmits lost segments"],
            confidence="low",
        ),
    ]


@pytest.fixture
def transcript_text() -> str:
    """Six paragraphs of 60 words (80 estimated tokens) each."""
    return "\n\n".join(_paragraph(n) for n in range(1, 7))


@pytest.fixture
def transcript_file(tmp_path: Path, transcript_text: str) -> Path:
    path = tmp_path / "transcripts" / "lecture1.txt"
    path.parent.mkdir(parents=True)
    path.write_text(transcript_text, encoding="utf-8")
    return path


# === FIXTURES: Configuration ===


@pytest.fixture
def provider_configs() -> dict[str, ProviderConfig]:
    return {
        "claude": ProviderConfig(
            name="claude", base_url="https://claude.test/v1", api_key="sk-ant-test",
            model_id="claude-test",
        ),
        "gpt": ProviderConfig(
            name="gpt", base_url="https://openai.test/v1", api_key="sk-test",
            model_id="gpt-test",
        ),
        "gemini": ProviderConfig(
            name="gemini", base_url="https://gemini.test/v1beta/openai", api_key="gm-test",
            model_id="gemini-test", auth_style=AuthStyle.NATIVE_KEY,
        ),
    }


@pytest.fixture
def pipeline_config(tmp_path: Path, provider_configs: dict[str, ProviderConfig]) -> PipelineConfig:
    """Small chunks, fast retries, no pacing delay."""
    return PipelineConfig(
        providers=provider_configs,
        roles={"summarizer": "claude", "consolidator": "gpt", "materializer": "gpt"},
        output_dir=tmp_path / "output",
        transcript_dir=tmp_path / "transcripts",
        retry=RetryPolicy(max_retries=3, initial_backoff_ms=1000),
        chunk_size=200,
        chunk_overlap=0,
        timeout_s=5.0,
        chunk_call_delay_s=0.0,
    )
