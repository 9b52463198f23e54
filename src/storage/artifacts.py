# src/storage/artifacts.py — v1
"""Read/write stage artifacts under the output root.

Each ``save_*`` returns the relative reference recorded in ItemState; the
matching ``load_*`` takes that reference back.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import TypeAdapter

from transcriptflow.core.models import ChunkSummary, ExamMaterials, TextChunk
from transcriptflow.storage import layout
from transcriptflow.storage.local_writer import LocalWriter

logger = logging.getLogger(__name__)

_CHUNK_LIST = TypeAdapter(list[TextChunk])


def _chunk_sort_key(name: str) -> tuple[int, str]:
    """Sort ``chunk_<id>.json`` numerically when ids are numbers."""
    chunk_id = name.removeprefix("chunk_").removesuffix(".json")
    return (int(chunk_id), "") if chunk_id.isdigit() else (1 << 30, chunk_id)


class ArtifactStore:
    """Stage artifact persistence on top of a LocalWriter."""

    def __init__(self, output_dir: Path, writer: LocalWriter | None = None) -> None:
        self._root = Path(output_dir)
        self._writer = writer or LocalWriter(self._root)

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, ref: str) -> Path:
        return self._root / ref

    # --- Chunks ---

    async def save_chunks(self, stem: str, chunks: list[TextChunk]) -> str:
        ref = layout.chunks_ref(stem)
        await self._writer.write(ref, _CHUNK_LIST.dump_json(chunks, indent=2))
        return ref

    async def load_chunks(self, ref: str) -> list[TextChunk]:
        return _CHUNK_LIST.validate_json(await self._writer.read(ref))

    # --- Summaries ---

    async def save_summary(self, stem: str, summary: ChunkSummary) -> str:
        ref = layout.summary_file_ref(stem, summary.chunk_id)
        await self._writer.write(ref, summary.model_dump_json(indent=2))
        return ref

    async def load_summaries(self, ref: str) -> list[ChunkSummary]:
        """Load every ``chunk_<id>.json`` under a summaries directory.

        Raises:
            FileNotFoundError: If the directory is missing.
        """
        if not await self._writer.exists(ref):
            raise FileNotFoundError(f"Summaries directory not found: {self.resolve(ref)}")
        names = [n for n in await self._writer.list_dir(ref) if n.endswith(".json")]
        summaries = []
        for name in sorted(names, key=_chunk_sort_key):
            raw = await self._writer.read(f"{ref}/{name}")
            summaries.append(ChunkSummary.model_validate_json(raw))
        return summaries

    # --- Master notes ---

    async def save_master_notes(self, stem: str, notes: str) -> str:
        ref = layout.master_notes_ref(stem)
        await self._writer.write(ref, notes)
        return ref

    async def load_master_notes(self, ref: str) -> str:
        return await self._writer.read_text(ref)

    # --- Exam materials ---

    async def save_materials(self, stem: str, materials: ExamMaterials) -> str:
        ref = layout.exam_materials_ref(stem)
        for field_name, filename in ExamMaterials.FILENAMES.items():
            await self._writer.write(f"{ref}/{filename}", getattr(materials, field_name))
        return ref

    async def load_materials(self, ref: str) -> ExamMaterials:
        values = {
            field_name: await self._writer.read_text(f"{ref}/{filename}")
            for field_name, filename in ExamMaterials.FILENAMES.items()
        }
        return ExamMaterials(**values)

    # --- Cleanup ---

    async def discard(self, ref: str) -> None:
        """Remove a (possibly partial) artifact file or directory."""
        if await self._writer.exists(ref):
            logger.info("Removing previous output %s", ref)
        await self._writer.delete(ref)

