# src/chunking/base_chunker.py — v2
"""Abstract chunker interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from transcriptflow.core.models import TextChunk


class BaseChunker(ABC):
    """Unified interface for chunking strategies.

    Implementations are deterministic and perform no I/O.
    """

    @property
    @abstractmethod
    def strategy_name(self) -> str:
        """Strategy identifier (e.g., 'paragraph')."""

    @abstractmethod
    def chunk(self, raw_text: str, source_file: str = "") -> list[TextChunk]:
        """Split raw text into ordered chunks."""
