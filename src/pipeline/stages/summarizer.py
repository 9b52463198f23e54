# src/pipeline/stages/summarizer.py — v1
"""Summarization stage: one provider call per chunk.

The response is expected to be a JSON ChunkSummary. A body that is not
usable JSON (or a MalformedResponseError from the adapter) degrades that
chunk to a local summary with ``low`` confidence; any other failure after
retries fails the stage.
"""

from __future__ import annotations

import asyncio
import json
import logging

from transcriptflow.core.models import ChunkSummary, TextChunk
from transcriptflow.core.text import extract_json_object, first_words, truncate_to_tokens
from transcriptflow.llm.base_client import BaseLLMClient
from transcriptflow.llm.errors import MalformedResponseError
from transcriptflow.llm.retry import RetryPolicy, SleepFn
from transcriptflow.pipeline.stages.base_stage import (
    ItemJob,
    LLMStage,
    StageResult,
    load_prompt,
)
from transcriptflow.pipeline.state import Stage
from transcriptflow.storage import layout
from transcriptflow.storage.artifacts import ArtifactStore

logger = logging.getLogger(__name__)

MAX_PROMPT_TOKENS = 100_000
FALLBACK_SUMMARY_WORDS = 50


def build_user_prompt(chunk: TextChunk) -> str:
    prompt = f"Chunk ID: {chunk.chunk_id}\nChunk Title: {chunk.title}\n\nChunk Text:\n{chunk.text}"
    return truncate_to_tokens(prompt, MAX_PROMPT_TOKENS)


def parse_summary(response_text: str, chunk: TextChunk) -> ChunkSummary:
    """Parse a JSON summary returned for ``chunk``.

    Raises:
        ValueError: If no valid summary object can be read.
    """
    data = json.loads(extract_json_object(response_text))
    if isinstance(data.get("confidence"), str):
        data["confidence"] = data["confidence"].strip().lower()
    # The chunk id always comes from the chunk; it names the summary file.
    data["chunk_id"] = chunk.chunk_id
    data.setdefault("title", chunk.title)
    return ChunkSummary.model_validate(data)


def fallback_summary(chunk: TextChunk) -> ChunkSummary:
    """Local summary from the first words of the chunk."""
    return ChunkSummary(
        chunk_id=chunk.chunk_id,
        title=chunk.title,
        summary=first_words(chunk.text, FALLBACK_SUMMARY_WORDS) + "...",
        confidence="low",
    )


class SummarizerStage(LLMStage):
    """Summarize every chunk of an item."""

    def __init__(
        self,
        artifacts: ArtifactStore,
        client: BaseLLMClient,
        retry: RetryPolicy | None = None,
        sleep: SleepFn = asyncio.sleep,
        chunk_delay_s: float = 1.0,
    ) -> None:
        super().__init__(artifacts, client, retry=retry, sleep=sleep)
        self._chunk_delay_s = chunk_delay_s

    @property
    def stage(self) -> Stage:
        return Stage.SUMMARIZATION

    def output_ref(self, stem: str) -> str:
        return layout.summaries_ref(stem)

    async def run(self, job: ItemJob) -> StageResult:
        if job.chunks is None:
            raise RuntimeError("summarization requires chunks")

        system_prompt = load_prompt("chunk_summarizer")
        summaries: list[ChunkSummary] = []
        total = len(job.chunks)

        for index, chunk in enumerate(job.chunks):
            logger.info("Summarizing chunk %d/%d (%s) with %s", index + 1, total, chunk.title, self.provider)
            summary = await self._summarize_chunk(job, chunk, system_prompt)
            await self._artifacts.save_summary(job.stem, summary)
            summaries.append(summary)

            if index < total - 1 and self._chunk_delay_s > 0:
                await self._sleep(self._chunk_delay_s)

        job.summaries = summaries
        low = [s.chunk_id for s in summaries if s.is_low_confidence]
        if low:
            logger.warning("%d chunk(s) summarized with low confidence: %s", len(low), ", ".join(low))
        return StageResult(
            output_ref=self.output_ref(job.stem),
            counts={"summary_count": len(summaries)},
            low_confidence_chunks=low,
        )

    async def _summarize_chunk(self, job: ItemJob, chunk: TextChunk, system_prompt: str) -> ChunkSummary:
        try:
            text = await self._generate(
                job, system_prompt, build_user_prompt(chunk), step=f"chunk_{chunk.chunk_id}",
            )
        except MalformedResponseError as exc:
            logger.warning("Chunk %s: %s; using fallback summary", chunk.chunk_id, exc)
            return fallback_summary(chunk)

        try:
            return parse_summary(text, chunk)
        except ValueError as exc:  # includes JSONDecodeError and ValidationError
            logger.warning("Chunk %s: unparseable summary JSON (%s); using fallback summary", chunk.chunk_id, exc)
            return fallback_summary(chunk)

    async def reload(self, job: ItemJob, output_ref: str) -> None:
        job.summaries = await self._artifacts.load_summaries(output_ref)
