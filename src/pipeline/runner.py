# src/pipeline/runner.py — v3
"""Item pipeline runner: drive one item through the four stages.

Per invocation:
  1. Find the first stage that is not COMPLETED (none → no-op).
  2. Reload the outputs of every earlier stage from their references.
  3. For each remaining stage: mark IN_PROGRESS and persist, remove stale
     output, run, then mark COMPLETED (or FAILED) and persist.
A failed stage stops the item and raises StageFailedError; later stages
are not attempted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Sequence

from transcriptflow.chunking.base_chunker import BaseChunker
from transcriptflow.chunking.paragraph_chunker import ParagraphChunker
from transcriptflow.llm.retry import SleepFn
from transcriptflow.logging.context import item_context, stage_context
from transcriptflow.pipeline.checkpoint import RunCheckpoint
from transcriptflow.pipeline.errors import StageFailedError, describe_error
from transcriptflow.pipeline.stages.base_stage import BaseStage, ItemJob
from transcriptflow.pipeline.stages.chunker import ChunkerStage
from transcriptflow.pipeline.stages.consolidator import ConsolidatorStage
from transcriptflow.pipeline.stages.materializer import MaterializerStage
from transcriptflow.pipeline.stages.summarizer import SummarizerStage
from transcriptflow.pipeline.state import STAGE_ORDER, ItemState, Stage
from transcriptflow.storage import layout
from transcriptflow.storage.artifacts import ArtifactStore
from transcriptflow.tracking.call_logger import CallLogger

if TYPE_CHECKING:
    from transcriptflow.config.pipeline_config import PipelineConfig
    from transcriptflow.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)


@dataclass
class ItemOutcome:
    """Result of one successful run_item call."""

    item_id: str
    skipped: bool = False
    stages_run: list[str] = field(default_factory=list)
    chunk_count: int = 0
    summary_count: int = 0
    materials_count: int = 0
    low_confidence_chunks: list[str] = field(default_factory=list)
    actual_cost: float = 0.0
    duration_ms: int = 0


class ItemPipelineRunner:
    """Run items through chunking → summarization → consolidation → materialization.

    Args:
        checkpoint: Write-through owner of the run state.
        stages: One implementation per Stage.
        output_dir: Output root (for per-item call logs).
    """

    def __init__(
        self,
        checkpoint: RunCheckpoint,
        stages: Sequence[BaseStage],
        output_dir: Path,
    ) -> None:
        self._checkpoint = checkpoint
        self._stages: dict[Stage, BaseStage] = {s.stage: s for s in stages}
        missing = [s.value for s in STAGE_ORDER if s not in self._stages]
        if missing:
            raise ValueError(f"No implementation for stage(s): {', '.join(missing)}")
        self._output_dir = Path(output_dir)

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        checkpoint: RunCheckpoint,
        llm_factory: Callable[[str], BaseLLMClient],
        chunker: BaseChunker | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> ItemPipelineRunner:
        """Wire the standard stages from configuration.

        Args:
            config: Frozen pipeline configuration.
            checkpoint: Run checkpoint (usually RunCheckpoint.open(...)).
            llm_factory: Callable(role) -> BaseLLMClient.
            chunker: Chunking strategy (paragraph chunker by default).
            sleep: Awaitable sleep used for backoff and chunk pacing.
        """
        artifacts = ArtifactStore(config.output_dir)
        stages: list[BaseStage] = [
            ChunkerStage(
                artifacts,
                chunker or ParagraphChunker(config.chunk_size, config.chunk_overlap),
            ),
            SummarizerStage(
                artifacts,
                llm_factory("summarizer"),
                retry=config.retry,
                sleep=sleep,
                chunk_delay_s=config.chunk_call_delay_s,
            ),
            ConsolidatorStage(artifacts, llm_factory("consolidator"), retry=config.retry, sleep=sleep),
            MaterializerStage(artifacts, llm_factory("materializer"), retry=config.retry, sleep=sleep),
        ]
        return cls(checkpoint, stages, config.output_dir)

    @property
    def checkpoint(self) -> RunCheckpoint:
        return self._checkpoint

    def register(self, item_id: str, source_path: Path | None = None) -> None:
        """Add an item to the run state ahead of processing it.

        Registering a whole batch up front keeps the state file alive until
        the last item finishes, not just the first.
        """
        self._checkpoint.register(item_id, str(source_path) if source_path else "")

    async def run_item(self, item_id: str, source_path: Path | None = None) -> ItemOutcome:
        """Advance one item as far as it goes.

        Args:
            item_id: Stable item identifier (the source filename).
            source_path: Raw transcript; defaults to the path saved in state.

        Returns:
            ItemOutcome (``skipped`` when every stage was already complete).

        Raises:
            StageFailedError: After recording the failure in the item's state.
        """
        start_ns = time.monotonic_ns()
        item = self._checkpoint.register(item_id, str(source_path) if source_path else "")
        stem = layout.item_stem(item_id)
        call_logger = CallLogger(item_id, layout.calls_log_path(self._output_dir, stem))
        outcome = ItemOutcome(item_id=item_id)

        with item_context(item_id):
            next_stage = item.next_stage()
            if next_stage is None:
                logger.info("All stages already completed; nothing to do")
                outcome.skipped = True
                self._fill_outcome(outcome, item, call_logger, start_ns)
                return outcome

            if next_stage is Stage.CHUNKING:
                call_logger.reset()

            job = ItemJob(
                item_id=item_id,
                stem=stem,
                source_path=source_path or (Path(item.source_path) if item.source_path else None),
                call_logger=call_logger,
            )
            start_stage = await self._reload_completed(job, item, next_stage)
            if start_stage is not Stage.CHUNKING:
                logger.info("Resuming at %s", start_stage.value)

            for stage in STAGE_ORDER[STAGE_ORDER.index(start_stage):]:
                await self._run_stage(job, item, stage)
                outcome.stages_run.append(stage.value)

        self._fill_outcome(outcome, item, call_logger, start_ns)
        logger.info(
            "Item %s completed (%d stage(s) run, %dms)",
            item_id, len(outcome.stages_run), outcome.duration_ms,
        )
        return outcome

    async def _reload_completed(self, job: ItemJob, item: ItemState, next_stage: Stage) -> Stage:
        """Load outputs of stages before ``next_stage``; return where to start.

        A completed stage whose artifact cannot be read is reset, together
        with everything after it, and the run starts from that stage.
        """
        earlier = STAGE_ORDER[:STAGE_ORDER.index(next_stage)]
        for position, stage in enumerate(earlier):
            ref = item.output_of(stage)
            try:
                await self._stages[stage].reload(job, ref or "")
            except (OSError, ValueError) as exc:
                logger.warning(
                    "Output of %s (%s) is unusable: %s; re-running from %s",
                    stage.value, ref, exc, stage.value,
                )
                for stale in earlier[position:]:
                    self._checkpoint.reset_stage(item, stale)
                return stage
            logger.debug("Reloaded %s output from %s", stage.value, ref)
        return next_stage

    async def _run_stage(self, job: ItemJob, item: ItemState, stage: Stage) -> None:
        impl = self._stages[stage]
        with stage_context(stage.value):
            self._checkpoint.begin_stage(item, stage)
            logger.info("Stage %s started", stage.value)

            try:
                await impl.discard_partial(job)
                result = await impl.run(job)
            except Exception as exc:
                message = describe_error(exc)
                self._checkpoint.fail_stage(item, stage, message)
                logger.error("Stage %s failed: %s", stage.value, message)
                raise StageFailedError(item.item_id, stage.value, exc) from exc

            for name, value in result.counts.items():
                setattr(item, name, value)
            if stage is Stage.SUMMARIZATION:
                item.low_confidence_chunks = list(result.low_confidence_chunks)
            self._checkpoint.complete_stage(item, stage, result.output_ref)
            logger.info("Stage %s completed → %s", stage.value, result.output_ref)

    @staticmethod
    def _fill_outcome(
        outcome: ItemOutcome, item: ItemState, call_logger: CallLogger, start_ns: int,
    ) -> None:
        outcome.chunk_count = item.chunk_count
        outcome.summary_count = item.summary_count
        outcome.materials_count = item.materials_count
        outcome.low_confidence_chunks = list(item.low_confidence_chunks)
        outcome.actual_cost = call_logger.total_cost()
        outcome.duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
