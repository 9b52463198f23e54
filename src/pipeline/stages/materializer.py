# src/pipeline/stages/materializer.py — v1
"""Materialization stage: flashcards, practice questions, quick revision.

Three provider calls, each of which degrades to a placeholder document
when the response is malformed.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Callable

from transcriptflow.core.models import ChunkSummary, ExamMaterials
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

DEFAULT_PRACTICE_QUESTIONS = """# Practice Questions

## Multiple Choice Questions

### Question 1
Which of the following is correct?
a) Option A
b) Option B
c) Option C
d) Option D

**Answer**: To be filled in

## Short Answer Questions

### Question 1
Short answer question here?

**Expected Answer**: [Expected response]

## Long Form Questions

### Question 1
[Long-form question with marking rubric]

**Expected Answer and Marking Rubric**:
- Point 1: [X marks]
- Point 2: [X marks]
"""

DEFAULT_QUICK_REVISION = """# Quick Revision Sheet

## Must-Know Concepts
- Concept 1: Brief explanation
- Concept 2: Brief explanation
- Concept 3: Brief explanation

## Key Definitions
- Term 1: Definition
- Term 2: Definition

## High-Yield Exam Tips
- Focus on frequently tested topics
- Understand, do not just memorize
- Practice past exam questions
"""


def default_flashcards(summaries: list[ChunkSummary]) -> str:
    """Flashcards CSV built locally from the summaries."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(["Front", "Back"])
    for s in summaries:
        writer.writerow([f"What is {s.title}?", s.summary])
        for point in s.key_points:
            writer.writerow([f"Key point from {s.title}", point])
        for d in s.definitions:
            writer.writerow([f"Define: {d.term}", d.definition])
    return buf.getvalue()


class MaterializerStage(LLMStage):
    """Generate the three exam documents from the master notes."""

    @property
    def stage(self) -> Stage:
        return Stage.MATERIALIZATION

    def output_ref(self, stem: str) -> str:
        return layout.exam_materials_ref(stem)

    async def run(self, job: ItemJob) -> StageResult:
        if job.master_notes is None:
            raise RuntimeError("materialization requires master notes")
        summaries = job.summaries or []

        flashcards = await self._material(
            job, "flashcards", "Create flashcards from this content:",
            lambda: default_flashcards(summaries),
        )
        questions = await self._material(
            job, "practice_questions", "Generate practice questions based on this content:",
            lambda: DEFAULT_PRACTICE_QUESTIONS,
        )
        revision = await self._material(
            job, "quick_revision", "Create a quick revision sheet from this content:",
            lambda: DEFAULT_QUICK_REVISION,
        )

        materials = ExamMaterials(
            flashcards_csv=flashcards,
            practice_questions_md=questions,
            quick_revision_md=revision,
        )
        ref = await self._artifacts.save_materials(job.stem, materials)
        job.materials = materials
        return StageResult(output_ref=ref, counts={"materials_count": len(ExamMaterials.FILENAMES)})

    async def _material(
        self,
        job: ItemJob,
        name: str,
        instruction: str,
        fallback: Callable[[], str],
    ) -> str:
        logger.info("Generating %s with %s", name.replace("_", " "), self.provider)
        user_prompt = truncate_to_tokens(f"{instruction}\n\n{job.master_notes}", MAX_PROMPT_TOKENS)
        try:
            text = await self._generate(job, load_prompt(name), user_prompt, step=name)
        except MalformedResponseError as exc:
            logger.warning("%s response unusable (%s); writing placeholder", name, exc)
            return fallback()
        if not text.strip():
            logger.warning("Empty %s response; writing placeholder", name)
            return fallback()
        return text

    async def reload(self, job: ItemJob, output_ref: str) -> None:
        job.materials = await self._artifacts.load_materials(output_ref)
