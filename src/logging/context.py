# src/logging/context.py — v2
"""Contextual logging support: attach run_id, item_id and stage to records."""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

# Set per run, per item and per stage by the pipeline runners.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_item_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "item_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    run_id: str | None = None
    item_id: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        item_id=_item_id.get(),
        stage=_stage.get(),
    )


def set_run_context(run_id: str) -> None:
    """Set run-level context (called once per run)."""
    _run_id.set(run_id)


@contextmanager
def item_context(item_id: str) -> Iterator[None]:
    """Attribute log lines inside the block to one item."""
    token = _item_id.set(item_id)
    try:
        yield
    finally:
        _item_id.reset(token)


@contextmanager
def stage_context(stage: str) -> Iterator[None]:
    """Attribute log lines inside the block to one stage."""
    token = _stage.set(stage)
    try:
        yield
    finally:
        _stage.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _item_id.set(None)
    _stage.set(None)
