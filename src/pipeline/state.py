# src/pipeline/state.py — v2
"""Persisted pipeline state: per-item stage statuses and output references.

``PipelineRunState`` is the document saved by the StateStore after every
stage transition. Mutations go through ItemState methods so the
output-reference invariant holds at every save: a stage's output
reference is set if and only if that stage is COMPLETED.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class Stage(str, Enum):
    """Pipeline stages, in execution order."""

    CHUNKING = "chunking"
    SUMMARIZATION = "summarization"
    CONSOLIDATION = "consolidation"
    MATERIALIZATION = "materialization"


STAGE_ORDER: tuple[Stage, ...] = tuple(Stage)


class StageStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class OverallStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


# Field holding each stage's output reference.
_OUTPUT_FIELDS: dict[Stage, str] = {
    Stage.CHUNKING: "chunks_output",
    Stage.SUMMARIZATION: "summaries_output",
    Stage.CONSOLIDATION: "consolidation_output",
    Stage.MATERIALIZATION: "materials_output",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_run_id(timestamp: datetime | None = None) -> str:
    """Generate a run_id: yyyymmdd_hhmm_{uuid4_short}."""
    ts = timestamp or _now()
    return f"{ts.strftime('%Y%m%d_%H%M')}_{uuid.uuid4().hex[:5]}"


class ItemState(BaseModel):
    """Progress of one input item through the four stages."""

    item_id: str
    source_path: str = ""

    chunking: StageStatus = StageStatus.NOT_STARTED
    summarization: StageStatus = StageStatus.NOT_STARTED
    consolidation: StageStatus = StageStatus.NOT_STARTED
    materialization: StageStatus = StageStatus.NOT_STARTED

    # Output references, relative to the output root.
    chunks_output: str | None = None
    summaries_output: str | None = None
    consolidation_output: str | None = None
    materials_output: str | None = None

    error_message: str | None = None

    chunk_count: int = 0
    summary_count: int = 0
    materials_count: int = 0
    low_confidence_chunks: list[str] = Field(default_factory=list)

    last_updated: datetime = Field(default_factory=_now)

    @model_validator(mode="after")
    def _check_output_refs(self) -> ItemState:
        for stage in STAGE_ORDER:
            completed = self.status_of(stage) is StageStatus.COMPLETED
            has_ref = bool(self.output_of(stage))
            if completed != has_ref:
                raise ValueError(
                    f"{self.item_id}: {stage.value} is {self.status_of(stage).value} "
                    f"but output reference is {'set' if has_ref else 'missing'}"
                )
        return self

    # --- Queries ---

    def status_of(self, stage: Stage) -> StageStatus:
        return getattr(self, stage.value)

    def output_of(self, stage: Stage) -> str | None:
        return getattr(self, _OUTPUT_FIELDS[stage])

    def next_stage(self) -> Stage | None:
        """First stage (in order) that is not COMPLETED, or None when done."""
        for stage in STAGE_ORDER:
            if self.status_of(stage) is not StageStatus.COMPLETED:
                return stage
        return None

    @property
    def is_complete(self) -> bool:
        return self.next_stage() is None

    @property
    def has_failed(self) -> bool:
        return any(self.status_of(s) is StageStatus.FAILED for s in STAGE_ORDER)

    @property
    def failed_stage(self) -> Stage | None:
        for stage in STAGE_ORDER:
            if self.status_of(stage) is StageStatus.FAILED:
                return stage
        return None

    # --- Transitions ---

    def _set(self, stage: Stage, status: StageStatus, output_ref: str | None) -> None:
        setattr(self, stage.value, status)
        setattr(self, _OUTPUT_FIELDS[stage], output_ref)
        self.last_updated = _now()

    def mark_in_progress(self, stage: Stage) -> None:
        self._set(stage, StageStatus.IN_PROGRESS, None)
        self.error_message = None

    def mark_completed(self, stage: Stage, output_ref: str) -> None:
        if not output_ref:
            raise ValueError(f"{stage.value} cannot complete without an output reference")
        self._set(stage, StageStatus.COMPLETED, output_ref)

    def mark_failed(self, stage: Stage, message: str) -> None:
        self._set(stage, StageStatus.FAILED, None)
        self.error_message = message

    def reset(self, stage: Stage) -> None:
        """Return a stage to NOT_STARTED (its output is no longer usable)."""
        self._set(stage, StageStatus.NOT_STARTED, None)


class PipelineRunState(BaseModel):
    """Top-level persisted record for one run."""

    run_id: str = Field(default_factory=generate_run_id)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    overall_status: OverallStatus = OverallStatus.IN_PROGRESS
    items: dict[str, ItemState] = Field(default_factory=dict)
    error_log: list[str] = Field(default_factory=list)

    def get_or_create_item(self, item_id: str, source_path: str = "") -> ItemState:
        item = self.items.get(item_id)
        if item is None:
            item = ItemState(item_id=item_id, source_path=source_path)
            self.items[item_id] = item
        elif source_path and not item.source_path:
            item.source_path = source_path
        return item

    @property
    def all_completed(self) -> bool:
        """True when every registered item finished every stage."""
        return bool(self.items) and all(i.is_complete for i in self.items.values())

    def derive_overall_status(self) -> OverallStatus:
        if self.all_completed:
            return OverallStatus.COMPLETED
        if any(i.has_failed for i in self.items.values()):
            return OverallStatus.FAILED
        return OverallStatus.IN_PROGRESS

    def log_error(self, message: str) -> None:
        self.error_log.append(f"{_now().isoformat()} {message}")

    def touch(self) -> None:
        self.updated_at = _now()
