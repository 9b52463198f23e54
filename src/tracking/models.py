# src/tracking/models.py — v2
"""Tracking domain models: ModelPricing, LLMCallRecord, CostEstimate."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ModelPricing(BaseModel):
    """USD price per 1M tokens for a provider family."""

    provider: str
    input_price_per_1m: float
    output_price_per_1m: float


class LLMCallRecord(BaseModel):
    """Individual provider call log entry."""

    call_id: str
    timestamp: datetime
    item_id: str
    stage: str
    step: str
    provider: str
    model: str
    input_tokens: int
    output_tokens: int
    total_tokens: int
    latency_ms: int
    estimated_cost_usd: float = 0.0


class CostEstimate(BaseModel):
    """Up-front cost estimate for one item."""

    transcript_tokens: int
    num_chunks: int
    summarizer: str
    consolidator: str
    materializer: str
    chunking_cost: float = 0.0
    summarization_cost: float = 0.0
    consolidation_cost: float = 0.0
    materials_cost: float = 0.0

    @property
    def total_cost(self) -> float:
        return (
            self.chunking_cost
            + self.summarization_cost
            + self.consolidation_cost
            + self.materials_cost
        )

    def format(self) -> str:
        """Multi-line human-readable breakdown."""
        rows = [
            ("Chunking (local)", self.chunking_cost),
            (f"Summarization ({self.summarizer})", self.summarization_cost),
            (f"Consolidation ({self.consolidator})", self.consolidation_cost),
            (f"Exam materials ({self.materializer})", self.materials_cost),
            ("Total", self.total_cost),
        ]
        lines = [f"Estimated tokens: {self.transcript_tokens:,} ({self.num_chunks} chunks)"]
        lines.extend(f"  {label:<30} ${cost:.4f}" for label, cost in rows)
        return "\n".join(lines)
