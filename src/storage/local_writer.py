# src/storage/local_writer.py — v3
"""Local filesystem output writer.

Every write goes to a temporary file in the destination directory and is
then moved over the target with ``os.replace``, so readers see either the
old content or the new content, never a partial file.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from transcriptflow.storage.base_output_writer import BaseOutputWriter


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` via temp file + os.replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def atomic_write_text(path: Path, text: str) -> None:
    """UTF-8 variant of atomic_write_bytes."""
    atomic_write_bytes(path, text.encode("utf-8"))


class LocalWriter(BaseOutputWriter):
    """Write outputs to the local filesystem."""

    def __init__(self, base_path: str | Path | None = None) -> None:
        """Initialize with optional base path.

        Args:
            base_path: Root directory for all writes. If None, paths are used as given.
        """
        self._base = Path(base_path) if base_path else None

    def _resolve(self, path: str) -> Path:
        """Resolve a path relative to base_path."""
        if self._base is not None:
            return self._base / path
        return Path(path)

    async def write(self, path: str, content: bytes | str) -> None:
        data = content if isinstance(content, bytes) else content.encode("utf-8")
        atomic_write_bytes(self._resolve(path), data)

    async def read(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    async def read_text(self, path: str) -> str:
        return self._resolve(path).read_text(encoding="utf-8")

    async def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    async def delete(self, path: str) -> None:
        p = self._resolve(path)
        if p.is_dir() and not p.is_symlink():
            shutil.rmtree(p)
        else:
            p.unlink(missing_ok=True)

    async def list_dir(self, path: str) -> list[str]:
        p = self._resolve(path)
        if not p.is_dir():
            return []
        return [entry.name for entry in sorted(p.iterdir())]
