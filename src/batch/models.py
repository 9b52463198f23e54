# src/batch/models.py — v2
"""Batch processing models: FileResult, BatchResult."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, computed_field


class FileResult(BaseModel):
    """Outcome of one item in a batch."""

    item_id: str
    source_path: str = ""
    status: Literal["success", "failed"]
    duration_ms: int = 0
    estimated_cost: float = 0.0
    actual_cost: float = 0.0
    chunk_count: int = 0
    summary_count: int = 0
    materials_count: int = 0
    low_confidence_chunks: list[str] = Field(default_factory=list)
    already_complete: bool = False
    failed_stage: str | None = None
    error_message: str | None = None


class BatchResult(BaseModel):
    """Aggregate result of a batch run. Every input appears exactly once."""

    start_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: datetime | None = None
    successful: list[FileResult] = Field(default_factory=list)
    failed: list[FileResult] = Field(default_factory=list)

    def add(self, result: FileResult) -> None:
        if result.status == "success":
            self.successful.append(result)
        else:
            self.failed.append(result)

    def complete(self) -> None:
        self.end_time = datetime.now(timezone.utc)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_files(self) -> int:
        return len(self.successful) + len(self.failed)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success_rate(self) -> float:
        """successes / (successes + failures); 0.0 for an empty batch."""
        if self.total_files == 0:
            return 0.0
        return len(self.successful) / self.total_files

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_estimated_cost(self) -> float:
        return sum(r.estimated_cost for r in self.successful + self.failed)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_actual_cost(self) -> float:
        return sum(r.actual_cost for r in self.successful + self.failed)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_duration_ms(self) -> int:
        if self.end_time is None:
            return 0
        return int((self.end_time - self.start_time).total_seconds() * 1000)
