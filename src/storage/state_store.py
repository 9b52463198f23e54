# src/storage/state_store.py — v1
"""Durable store for PipelineRunState (``.pipeline_state.json``).

Single-process, single-writer. Saves are full overwrites via temp file +
os.replace. A corrupt file is reported and treated as absent: resumability
is lost, correctness is not, since stage artifacts are separate files.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from transcriptflow.pipeline.state import PipelineRunState
from transcriptflow.storage import layout
from transcriptflow.storage.local_writer import atomic_write_text

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """The state file could not be written or removed."""


class StateStore:
    """Save/load/exists/delete for the pipeline state file."""

    def __init__(self, output_dir: Path) -> None:
        self._path = layout.state_file_path(Path(output_dir))

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        """Cheap presence check, no parsing."""
        return self._path.is_file()

    def save(self, state: PipelineRunState) -> None:
        """Overwrite the state file.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        try:
            atomic_write_text(self._path, state.model_dump_json(indent=2))
        except OSError as exc:
            raise PersistenceError(f"Cannot save pipeline state to {self._path}: {exc}") from exc

    def load(self) -> PipelineRunState | None:
        """Return the saved state, or None when absent or unreadable."""
        if not self._path.exists():
            return None
        try:
            return PipelineRunState.model_validate_json(self._path.read_bytes())
        except (OSError, ValidationError) as exc:
            logger.warning(
                "Ignoring unreadable pipeline state %s (%s); starting fresh",
                self._path, exc,
            )
            return None

    def delete(self) -> None:
        """Remove the state file. Missing file is not an error.

        Raises:
            PersistenceError: If the file exists but cannot be removed.
        """
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Cannot delete pipeline state {self._path}: {exc}") from exc
