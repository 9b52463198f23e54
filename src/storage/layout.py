# src/storage/layout.py — v3
"""Output directory structure definition.

All paths are relative to the run's output root. Artifact references
stored in the pipeline state use the same relative form, so an output
directory can be moved without breaking resume.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

STATE_FILE = ".pipeline_state.json"

CHUNKS_DIR = "chunks"
SUMMARIES_DIR = "summaries"
CONSOLIDATED_DIR = "consolidated"
EXAM_MATERIALS_DIR = "exam_materials"
CALLS_DIR = "calls"

BATCH_REPORT_JSON = "batch_report.json"
BATCH_REPORT_CSV = "batch_report.csv"


def item_stem(item_id: str) -> str:
    """File stem used for an item's artifacts.

    ``lecture1.txt`` → ``lecture1``. Ids with directories are flattened:
    ``week2/lecture1.txt`` → ``week2__lecture1``.
    """
    path = PurePosixPath(item_id.replace("\\", "/"))
    parts = [*path.parent.parts, path.stem or path.name]
    return "__".join(p for p in parts if p not in ("", ".", "/")) or item_id


def state_file_path(output_dir: Path) -> Path:
    return output_dir / STATE_FILE


# --- Artifact references (relative) ---

def chunks_ref(stem: str) -> str:
    return f"{CHUNKS_DIR}/{stem}_chunks.json"


def summaries_ref(stem: str) -> str:
    return f"{SUMMARIES_DIR}/{stem}"


def summary_file_ref(stem: str, chunk_id: str) -> str:
    return f"{SUMMARIES_DIR}/{stem}/chunk_{chunk_id}.json"


def master_notes_ref(stem: str) -> str:
    return f"{CONSOLIDATED_DIR}/{stem}_master_notes.md"


def exam_materials_ref(stem: str) -> str:
    return f"{EXAM_MATERIALS_DIR}/{stem}"


# --- Absolute paths ---

def calls_log_path(output_dir: Path, stem: str) -> Path:
    return output_dir / CALLS_DIR / f"{stem}_calls.jsonl"


def batch_report_json_path(output_dir: Path) -> Path:
    return output_dir / BATCH_REPORT_JSON


def batch_report_csv_path(output_dir: Path) -> Path:
    return output_dir / BATCH_REPORT_CSV
