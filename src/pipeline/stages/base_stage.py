# src/pipeline/stages/base_stage.py — v1
"""Standard stage interface and the shared provider-call path.

A stage turns the in-memory inputs of an item (an ItemJob) into a durable
artifact and returns its reference. ``reload`` reads that artifact back
so later stages can run after a restart without repeating paid calls.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

from transcriptflow.core.models import ChunkSummary, ExamMaterials, TextChunk
from transcriptflow.llm.retry import RetryPolicy, SleepFn, with_retry
from transcriptflow.pipeline.state import Stage
from transcriptflow.storage.artifacts import ArtifactStore
from transcriptflow.tracking.call_logger import CallLogger

if TYPE_CHECKING:
    from transcriptflow.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Load and cache a prompt template from pipeline/prompts/."""
    return (_PROMPTS_DIR / f"{name}.txt").read_text(encoding="utf-8").strip()


@dataclass
class ItemJob:
    """In-memory inputs and outputs of one item during a run."""

    item_id: str
    stem: str
    source_path: Path | None
    call_logger: CallLogger
    chunks: list[TextChunk] | None = None
    summaries: list[ChunkSummary] | None = None
    master_notes: str | None = None
    materials: ExamMaterials | None = None


@dataclass
class StageResult:
    """What a stage reports back to the runner."""

    output_ref: str
    counts: dict[str, int] = field(default_factory=dict)
    low_confidence_chunks: list[str] = field(default_factory=list)


class BaseStage(ABC):
    """Standard interface for all pipeline stages."""

    def __init__(self, artifacts: ArtifactStore) -> None:
        self._artifacts = artifacts

    @property
    @abstractmethod
    def stage(self) -> Stage:
        """Which pipeline stage this implements."""

    @abstractmethod
    def output_ref(self, stem: str) -> str:
        """Where this stage writes its artifact for an item."""

    @abstractmethod
    async def run(self, job: ItemJob) -> StageResult:
        """Do the stage's work, persist its artifact, and fill ``job``."""

    @abstractmethod
    async def reload(self, job: ItemJob, output_ref: str) -> None:
        """Load a previously persisted artifact into ``job``.

        Raises:
            OSError: If the artifact is missing or unreadable.
            ValueError: If the artifact no longer parses.
        """

    async def discard_partial(self, job: ItemJob) -> None:
        """Remove whatever an interrupted or failed attempt left behind."""
        await self._artifacts.discard(self.output_ref(job.stem))


class LLMStage(BaseStage):
    """Stage backed by one provider client, each call under the retry policy."""

    def __init__(
        self,
        artifacts: ArtifactStore,
        client: BaseLLMClient,
        retry: RetryPolicy | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        super().__init__(artifacts)
        self._client = client
        self._retry = retry or RetryPolicy()
        self._sleep = sleep

    @property
    def provider(self) -> str:
        return self._client.provider_name

    async def _generate(self, job: ItemJob, system_prompt: str, user_prompt: str, step: str) -> str:
        """One logical provider call (retried as configured); returns text."""
        response = await with_retry(
            self._client.complete,
            system_prompt,
            user_prompt,
            policy=self._retry,
            sleep=self._sleep,
            label=f"{self.stage.value}/{step}",
        )
        job.call_logger.record(self.stage.value, response, step=step)
        return response.content
