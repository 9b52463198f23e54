# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
Pipeline state models live in pipeline/state.py.
"""

from __future__ import annotations

from typing import ClassVar, Literal

from pydantic import BaseModel, Field

Confidence = Literal["high", "medium", "low"]


# === CHUNK MODELS ===


class TextChunk(BaseModel):
    """One paragraph-aligned slice of a transcript."""

    chunk_id: str
    title: str
    text: str
    source_file: str = ""
    token_estimate: int = 0


# === SUMMARY MODELS ===


class Workflow(BaseModel):
    """A step-by-step process described in a chunk."""

    name: str
    steps: list[str] = Field(default_factory=list)
    notes: str | None = None


class Definition(BaseModel):
    """A term and its definition."""

    term: str
    definition: str


class ChunkSummary(BaseModel):
    """Structured summary of one chunk, as returned by the summarizer."""

    chunk_id: str
    title: str = ""
    summary: str = ""
    key_points: list[str] = Field(default_factory=list)
    workflows: list[Workflow] = Field(default_factory=list)
    definitions: list[Definition] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list)
    exam_pointers: list[str] = Field(default_factory=list)
    confidence: Confidence = "medium"

    @property
    def is_low_confidence(self) -> bool:
        return self.confidence == "low"


# === EXAM MATERIALS ===


class ExamMaterials(BaseModel):
    """The three exam-preparation documents produced per item."""

    flashcards_csv: str
    practice_questions_md: str
    quick_revision_md: str

    # Output filename for each field.
    FILENAMES: ClassVar[dict[str, str]] = {
        "flashcards_csv": "flashcards.csv",
        "practice_questions_md": "practice_questions.md",
        "quick_revision_md": "quick_revision.md",
    }
