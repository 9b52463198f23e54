# src/pipeline/errors.py — v1
"""Errors raised out of an item pipeline run."""

from __future__ import annotations


class ItemFatalError(Exception):
    """An item could not be processed. The batch records it and moves on."""

    def __init__(self, item_id: str, message: str) -> None:
        self.item_id = item_id
        super().__init__(message)


class StageFailedError(ItemFatalError):
    """A stage failed; the failure is already recorded in the item's state."""

    def __init__(self, item_id: str, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(item_id, f"{item_id}: {stage} failed: {describe_error(cause)}")


class SourceMissingError(ItemFatalError):
    """The item's source file is gone but a stage needs it."""

    def __init__(self, item_id: str, source_path: str) -> None:
        self.source_path = source_path
        super().__init__(item_id, f"{item_id}: source file not found: {source_path or '(unknown)'}")


def describe_error(error: BaseException) -> str:
    """``<ErrorType>: <message>`` for state files and reports."""
    message = str(error) or "no details"
    return f"{type(error).__name__}: {message}"
