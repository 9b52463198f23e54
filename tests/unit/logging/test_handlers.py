# tests/unit/logging/test_handlers.py — v2
"""Tests for logging/handlers.py."""

from __future__ import annotations

import pytest

from transcriptflow.logging.handlers import create_rotating_handler, parse_size


class TestParseSize:
    @pytest.mark.parametrize("text,expected", [
        ("10MB", 10 * 1024**2),
        ("512kb", 512 * 1024),
        ("1 GB", 1024**3),
        (" 3MB ", 3 * 1024**2),
    ])
    def test_valid(self, text, expected):
        assert parse_size(text) == expected

    @pytest.mark.parametrize("text", ["", "10", "MB", "1.5MB", "10TB"])
    def test_invalid(self, text):
        with pytest.raises(ValueError, match="Invalid size format"):
            parse_size(text)


class TestCreateRotatingHandler:
    def test_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "logs" / "nested" / "run.log"
        handler = create_rotating_handler(str(path), rotation="1KB", retention=2)
        try:
            assert path.parent.is_dir()
            assert handler.maxBytes == 1024
            assert handler.backupCount == 2
        finally:
            handler.close()
