# src/chunking/paragraph_chunker.py — v1
"""Greedy paragraph grouping.

Paragraphs (blank-line separated) are appended to the current chunk until
the next one would push it past ``target_size`` tokens. A paragraph larger
than the target becomes a chunk on its own; paragraphs are never split.
When ``overlap`` > 0, trailing paragraphs of the previous chunk whose
combined estimate fits within ``overlap`` are repeated at the start of
the next one.
"""

from __future__ import annotations

import logging

from transcriptflow.chunking.base_chunker import BaseChunker
from transcriptflow.core.models import TextChunk
from transcriptflow.core.text import clean_text, estimate_tokens, split_paragraphs

logger = logging.getLogger(__name__)


class ParagraphChunker(BaseChunker):
    """Paragraph-aligned chunker titled ``Chunk <n>``."""

    def __init__(self, target_size: int = 1500, overlap: int = 200) -> None:
        if target_size <= 0:
            raise ValueError("target_size must be > 0")
        if overlap < 0 or overlap >= target_size:
            raise ValueError("overlap must be >= 0 and < target_size")
        self._target_size = target_size
        self._overlap = overlap

    @property
    def strategy_name(self) -> str:
        return "paragraph"

    def chunk(self, raw_text: str, source_file: str = "") -> list[TextChunk]:
        paragraphs = split_paragraphs(clean_text(raw_text))
        groups: list[list[tuple[str, int]]] = []
        current: list[tuple[str, int]] = []
        current_size = 0
        carried = 0  # leading paragraphs in ``current`` repeated from the previous chunk

        for paragraph in paragraphs:
            size = estimate_tokens(paragraph)
            if len(current) > carried and current_size + size > self._target_size:
                groups.append(current)
                current = self._overlap_tail(current)
                carried = len(current)
                current_size = sum(s for _, s in current)
            current.append((paragraph, size))
            current_size += size

        if len(current) > carried:
            groups.append(current)

        chunks = [
            TextChunk(
                chunk_id=str(n),
                title=f"Chunk {n}",
                text="\n\n".join(p for p, _ in group),
                source_file=source_file,
                token_estimate=sum(s for _, s in group),
            )
            for n, group in enumerate(groups, start=1)
        ]
        logger.info("Created %d chunks from text", len(chunks))
        return chunks

    def _overlap_tail(self, group: list[tuple[str, int]]) -> list[tuple[str, int]]:
        """Trailing paragraphs of ``group`` fitting in the overlap budget."""
        tail: list[tuple[str, int]] = []
        budget = self._overlap
        for paragraph, size in reversed(group):
            if size > budget:
                break
            tail.insert(0, (paragraph, size))
            budget -= size
        # Never carry the whole previous chunk.
        if len(tail) == len(group):
            tail = tail[1:]
        return tail
