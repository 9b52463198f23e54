# src/tracking/call_logger.py — v2
"""Provider call logging for actual-cost tracking.

One logger per item. Each successful call is appended to
``calls/<stem>_calls.jsonl`` as it happens, so the log survives crashes
and covers every attempt of a resumed item.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from transcriptflow.llm.models import LLMResponse
from transcriptflow.tracking.cost_calculator import compute_tokens_cost
from transcriptflow.tracking.models import LLMCallRecord

logger = logging.getLogger(__name__)


class CallLogger:
    """Records provider calls for one item."""

    def __init__(self, item_id: str, path: Path | None = None) -> None:
        self._item_id = item_id
        self._path = path
        self._records: list[LLMCallRecord] = []

    @property
    def path(self) -> Path | None:
        return self._path

    def record(self, stage: str, response: LLMResponse, step: str = "") -> LLMCallRecord:
        """Record a successful call.

        Args:
            stage: Stage name (e.g. "summarization").
            step: Finer identifier (e.g. "chunk_3", "flashcards").
            response: Provider response with token usage.
        """
        record = LLMCallRecord(
            call_id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            item_id=self._item_id,
            stage=stage,
            step=step or stage,
            provider=response.provider,
            model=response.model,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
            total_tokens=response.input_tokens + response.output_tokens,
            latency_ms=response.latency_ms,
            estimated_cost_usd=compute_tokens_cost(
                response.input_tokens, response.output_tokens, response.provider,
            ),
        )
        self._records.append(record)
        if self._path is not None:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as f:
                    f.write(record.model_dump_json() + "\n")
            except OSError as exc:
                logger.warning("Cannot append to call log %s: %s", self._path, exc)
        return record

    def reset(self) -> None:
        """Forget previous calls (fresh start of an item)."""
        self._records.clear()
        if self._path is not None:
            self._path.unlink(missing_ok=True)

    @property
    def records(self) -> list[LLMCallRecord]:
        """Calls recorded by this logger instance."""
        return list(self._records)

    @property
    def total_calls(self) -> int:
        return len(self._records)

    @property
    def total_tokens(self) -> int:
        return sum(r.total_tokens for r in self._records)

    def total_cost(self) -> float:
        """Cost of every call in the log file (all attempts), or in memory."""
        records = read_call_log(self._path) if self._path is not None else self._records
        return sum(r.estimated_cost_usd for r in records)


def read_call_log(path: Path) -> list[LLMCallRecord]:
    """Read a JSON Lines call log. Unparseable lines are skipped."""
    if not path.exists():
        return []
    records: list[LLMCallRecord] = []
    for line_no, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        try:
            records.append(LLMCallRecord.model_validate_json(line))
        except ValidationError:
            logger.warning("Skipping malformed call log line %s:%d", path, line_no)
    return records
