# src/pipeline/stages/chunker.py — v1
"""Chunking stage: local, no provider calls."""

from __future__ import annotations

import logging

from transcriptflow.chunking.base_chunker import BaseChunker
from transcriptflow.pipeline.errors import SourceMissingError
from transcriptflow.pipeline.stages.base_stage import BaseStage, ItemJob, StageResult
from transcriptflow.pipeline.state import Stage
from transcriptflow.storage import layout
from transcriptflow.storage.artifacts import ArtifactStore

logger = logging.getLogger(__name__)


class ChunkerStage(BaseStage):
    """Read the raw transcript and split it into chunks."""

    def __init__(self, artifacts: ArtifactStore, chunker: BaseChunker) -> None:
        super().__init__(artifacts)
        self._chunker = chunker

    @property
    def stage(self) -> Stage:
        return Stage.CHUNKING

    def output_ref(self, stem: str) -> str:
        return layout.chunks_ref(stem)

    async def run(self, job: ItemJob) -> StageResult:
        if job.source_path is None or not job.source_path.is_file():
            raise SourceMissingError(job.item_id, str(job.source_path or ""))

        raw_text = job.source_path.read_text(encoding="utf-8")
        chunks = self._chunker.chunk(raw_text, source_file=job.source_path.name)
        if not chunks:
            raise ValueError(f"No text to chunk in {job.source_path}")

        ref = await self._artifacts.save_chunks(job.stem, chunks)
        job.chunks = chunks
        logger.info(
            "Chunked %s into %d chunk(s) (%s strategy)",
            job.source_path.name, len(chunks), self._chunker.strategy_name,
        )
        return StageResult(output_ref=ref, counts={"chunk_count": len(chunks)})

    async def reload(self, job: ItemJob, output_ref: str) -> None:
        job.chunks = await self._artifacts.load_chunks(output_ref)
