# src/batch/runner.py — v2
"""Batch runner: run the item pipeline over many files, isolating failures.

Items run strictly one after another. Any exception out of an item
becomes a failed FileResult and the loop moves on to the next item.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Protocol, Sequence

from transcriptflow.batch.models import BatchResult, FileResult
from transcriptflow.core.text import estimate_tokens
from transcriptflow.pipeline.runner import ItemOutcome
from transcriptflow.storage import layout
from transcriptflow.tracking.cost_calculator import estimate_item_cost

logger = logging.getLogger(__name__)


def item_id_for(source: Path, root: Path | None = None) -> str:
    """Stable item id: the path relative to ``root``, else the filename."""
    if root is not None:
        try:
            return source.relative_to(root).as_posix()
        except ValueError:
            pass
    return source.name


class ItemRunner(Protocol):
    """What the batch needs from the item pipeline."""

    def register(self, item_id: str, source_path: Path | None = None) -> None: ...

    async def run_item(self, item_id: str, source_path: Path | None = None) -> ItemOutcome: ...


class BatchRunner:
    """Fan out over items, fan in to a BatchResult.

    Args:
        item_runner: Item pipeline (ItemPipelineRunner in production).
        roles: {role: provider} used for cost estimates; None disables them.
    """

    def __init__(self, item_runner: ItemRunner, roles: dict[str, str] | None = None) -> None:
        self._item_runner = item_runner
        self._roles = roles

    async def run(self, sources: Sequence[Path], root: Path | None = None) -> BatchResult:
        """Process every source file in order.

        Args:
            sources: Transcript files, in processing order.
            root: Scan root. Item ids are paths relative to it
                (``week2/lecture1.txt``); without it, the bare filename.

        An empty sequence yields an empty (not failed) BatchResult. Items
        whose artifact stem collides with an earlier item are recorded as
        failed without running.
        """
        result = BatchResult()
        if not sources:
            logger.warning("No transcript files to process")
            result.complete()
            return result

        planned: list[tuple[Path, str, str | None]] = []
        owners: dict[str, str] = {}
        for source in sources:
            item_id = item_id_for(source, root)
            key = layout.item_stem(item_id).casefold()
            collides_with = owners.get(key)
            if collides_with is None:
                owners[key] = item_id
                self._item_runner.register(item_id, source)
            planned.append((source, item_id, collides_with))

        total = len(planned)
        for index, (source, item_id, collides_with) in enumerate(planned, start=1):
            if collides_with is not None:
                logger.error("[%d/%d] Skipping %s: same output name as %s", index, total, item_id, collides_with)
                result.add(FileResult(
                    item_id=item_id,
                    source_path=str(source),
                    status="failed",
                    error_message=f"{item_id}: output name collides with {collides_with}",
                ))
                continue
            logger.info("[%d/%d] Processing %s", index, total, item_id)
            result.add(await self._run_one(source, item_id))

        result.complete()
        logger.info(
            "Batch finished: %d succeeded, %d failed (%.1f%%)",
            len(result.successful), len(result.failed), result.success_rate * 100,
        )
        return result

    async def _run_one(self, source: Path, item_id: str) -> FileResult:
        estimated = self._estimate(source)
        start_ns = time.monotonic_ns()
        try:
            outcome = await self._item_runner.run_item(item_id, source)
        except Exception as exc:
            duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
            logger.error("Failed to process %s: %s", item_id, exc)
            return FileResult(
                item_id=item_id,
                source_path=str(source),
                status="failed",
                duration_ms=duration_ms,
                estimated_cost=estimated,
                failed_stage=getattr(exc, "stage", None),
                error_message=str(exc) or type(exc).__name__,
            )

        duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        logger.info("Processed %s in %dms", item_id, duration_ms)
        return FileResult(
            item_id=item_id,
            source_path=str(source),
            status="success",
            duration_ms=duration_ms,
            estimated_cost=estimated,
            actual_cost=outcome.actual_cost,
            chunk_count=outcome.chunk_count,
            summary_count=outcome.summary_count,
            materials_count=outcome.materials_count,
            low_confidence_chunks=outcome.low_confidence_chunks,
            already_complete=outcome.skipped,
        )

    def _estimate(self, source: Path) -> float:
        if self._roles is None:
            return 0.0
        try:
            tokens = estimate_tokens(source.read_text(encoding="utf-8", errors="replace"))
        except OSError as exc:
            logger.debug("Cannot estimate cost of %s: %s", source, exc)
            return 0.0
        return estimate_item_cost(
            tokens,
            self._roles["summarizer"],
            self._roles["consolidator"],
            self._roles.get("materializer"),
        ).total_cost
