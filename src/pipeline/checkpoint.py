# src/pipeline/checkpoint.py — v1
"""Write-through owner of the run state.

Every stage transition goes through a RunCheckpoint method that mutates
the ItemState and saves immediately. When every registered item has
completed every stage the state file is deleted instead of saved.
"""

from __future__ import annotations

import logging

from transcriptflow.pipeline.state import ItemState, OverallStatus, PipelineRunState, Stage
from transcriptflow.storage.state_store import PersistenceError, StateStore

logger = logging.getLogger(__name__)


class RunCheckpoint:
    """Holds the in-memory PipelineRunState and persists every change."""

    def __init__(self, store: StateStore, state: PipelineRunState | None = None) -> None:
        self._store = store
        self._state = state or PipelineRunState()

    @classmethod
    def open(cls, store: StateStore, fresh: bool = False) -> RunCheckpoint:
        """Resume the saved run, or start a new one.

        Args:
            store: State store for the output root.
            fresh: Discard any saved state first.
        """
        if fresh:
            store.delete()
            return cls(store)
        saved = store.load()
        if saved is not None:
            logger.info(
                "Resuming run %s (%d item(s) in state)", saved.run_id, len(saved.items),
            )
            saved.overall_status = OverallStatus.IN_PROGRESS
            return cls(store, saved)
        return cls(store)

    @property
    def state(self) -> PipelineRunState:
        return self._state

    @property
    def store(self) -> StateStore:
        return self._store

    def register(self, item_id: str, source_path: str = "") -> ItemState:
        """Get or create the state of an item (not saved until flush/transition)."""
        return self._state.get_or_create_item(item_id, source_path)

    # --- Transitions (each one persists) ---

    def begin_stage(self, item: ItemState, stage: Stage) -> None:
        item.mark_in_progress(stage)
        self.flush()

    def complete_stage(self, item: ItemState, stage: Stage, output_ref: str) -> None:
        item.mark_completed(stage, output_ref)
        self.flush()

    def fail_stage(self, item: ItemState, stage: Stage, message: str) -> None:
        item.mark_failed(stage, message)
        self._state.log_error(f"{item.item_id} [{stage.value}] {message}")
        self.flush()

    def reset_stage(self, item: ItemState, stage: Stage) -> None:
        item.reset(stage)
        self.flush()

    def finish(self) -> OverallStatus:
        """Settle the overall status at the end of a run and persist it."""
        self._state.overall_status = self._state.derive_overall_status()
        self.flush()
        return self._state.overall_status

    def flush(self) -> None:
        """Persist the state, or delete the file once everything is done.

        Persistence failures are logged, not raised: in-memory progress
        continues, only crash-resumability is degraded.
        """
        self._state.touch()
        try:
            if self._state.all_completed:
                if self._store.exists():
                    self._store.delete()
                    logger.info("All items completed; removed %s", self._store.path)
            else:
                self._store.save(self._state)
        except PersistenceError as exc:
            logger.warning("State persistence failed: %s", exc)
