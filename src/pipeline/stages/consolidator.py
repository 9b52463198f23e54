# src/pipeline/stages/consolidator.py — v1
"""Consolidation stage: merge chunk summaries into master notes."""

from __future__ import annotations

import logging

from transcriptflow.core.models import ChunkSummary
from transcriptflow.core.text import truncate_to_tokens
from transcriptflow.llm.errors import MalformedResponseError
from transcriptflow.pipeline.stages.base_stage import (
    ItemJob,
    LLMStage,
    StageResult,
    load_prompt,
)
from transcriptflow.pipeline.state import Stage
from transcriptflow.storage import layout

logger = logging.getLogger(__name__)

MAX_PROMPT_TOKENS = 50_000


def build_user_prompt(summaries: list[ChunkSummary]) -> str:
    """Flatten summaries into the consolidation request."""
    lines = ["CHUNK SUMMARIES:", ""]
    for s in summaries:
        lines.append(f"--- Chunk {s.chunk_id}: {s.title} ---")
        lines.append(f"Summary: {s.summary}")
        lines.append(f"Confidence: {s.confidence}")
        if s.key_points:
            lines.append(f"Key Points: {', '.join(s.key_points)}")
        if s.definitions:
            lines.append("Definitions:")
            lines.extend(f"  - {d.term}: {d.definition}" for d in s.definitions)
        if s.workflows:
            lines.append("Workflows:")
            lines.extend(f"  - {w.name}: {' -> '.join(w.steps)}" for w in s.workflows)
        lines.append("")
    lines.append("Please consolidate these summaries into a comprehensive Markdown document with three sections:")
    lines.append("1. Master Notes (detailed topic-wise breakdown)")
    lines.append("2. Quick Revision (1-page summary)")
    lines.append("3. Practice Questions")
    return truncate_to_tokens("\n".join(lines), MAX_PROMPT_TOKENS)


def fallback_master_notes(summaries: list[ChunkSummary]) -> str:
    """Master notes assembled locally from the summaries."""
    parts = ["# Master Notes", ""]
    for s in summaries:
        parts += [f"## {s.title or 'Chunk ' + s.chunk_id}", "", s.summary, ""]
        if s.key_points:
            parts.append("### Key Points")
            parts.extend(f"- {p}" for p in s.key_points)
            parts.append("")
        if s.definitions:
            parts.append("### Definitions")
            parts.extend(f"- **{d.term}**: {d.definition}" for d in s.definitions)
            parts.append("")
    return "\n".join(parts)


class ConsolidatorStage(LLMStage):
    """One provider call producing the item's master notes."""

    @property
    def stage(self) -> Stage:
        return Stage.CONSOLIDATION

    def output_ref(self, stem: str) -> str:
        return layout.master_notes_ref(stem)

    async def run(self, job: ItemJob) -> StageResult:
        if job.summaries is None:
            raise RuntimeError("consolidation requires summaries")

        logger.info("Consolidating %d summaries with %s", len(job.summaries), self.provider)
        try:
            notes = await self._generate(
                job, load_prompt("consolidator"), build_user_prompt(job.summaries), step="master_notes",
            )
        except MalformedResponseError as exc:
            logger.warning("Consolidation response unusable (%s); writing fallback master notes", exc)
            notes = fallback_master_notes(job.summaries)

        if not notes.strip():
            logger.warning("Empty consolidation response; writing fallback master notes")
            notes = fallback_master_notes(job.summaries)

        ref = await self._artifacts.save_master_notes(job.stem, notes)
        job.master_notes = notes
        return StageResult(output_ref=ref)

    async def reload(self, job: ItemJob, output_ref: str) -> None:
        job.master_notes = await self._artifacts.load_master_notes(output_ref)
