# src/batch/scanner.py — v2
"""Batch scanner: discover transcript files in a directory."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS: tuple[str, ...] = (".txt",)


class BatchScanner:
    """List transcript files in a stable (sorted) order."""

    def __init__(self, extensions: tuple[str, ...] = SUPPORTED_EXTENSIONS) -> None:
        self._extensions = tuple(e.lower() for e in extensions)

    def scan(self, scan_root: Path, recursive: bool = False) -> list[Path]:
        """Discover all supported files in directory.

        Hidden files (leading dot) are skipped.

        Raises:
            ValueError: If scan_root is not a directory.
        """
        if not scan_root.is_dir():
            raise ValueError(f"Scan root is not a directory: {scan_root}")

        pattern_fn = scan_root.rglob if recursive else scan_root.glob
        files = [
            path
            for path in sorted(pattern_fn("*"))
            if path.is_file()
            and not path.name.startswith(".")
            and path.suffix.lower() in self._extensions
        ]
        logger.info(
            "Scanned %s: found %d transcript file(s) (recursive=%s)",
            scan_root, len(files), recursive,
        )
        return files
