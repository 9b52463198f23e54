# src/batch/report.py — v1
"""Batch report export to JSON, CSV, and summary text."""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path

from transcriptflow.batch.models import BatchResult
from transcriptflow.storage import layout
from transcriptflow.storage.local_writer import atomic_write_text

logger = logging.getLogger(__name__)

CSV_FIELDS = [
    "item_id", "status", "duration_ms", "estimated_cost", "actual_cost",
    "chunks", "summaries", "materials", "error_message",
]


def to_json(result: BatchResult) -> str:
    """Structured report mirroring BatchResult."""
    return result.model_dump_json(indent=2)


def to_csv(result: BatchResult) -> str:
    """One row per item: successes first, then failures."""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_FIELDS, lineterminator="\n")
    writer.writeheader()
    for r in result.successful + result.failed:
        writer.writerow({
            "item_id": r.item_id,
            "status": r.status,
            "duration_ms": r.duration_ms,
            "estimated_cost": f"{r.estimated_cost:.4f}",
            "actual_cost": f"{r.actual_cost:.4f}",
            "chunks": r.chunk_count,
            "summaries": r.summary_count,
            "materials": r.materials_count,
            "error_message": r.error_message or "",
        })
    return buf.getvalue()


def _format_duration(ms: int) -> str:
    seconds = ms / 1000
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, seconds = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {seconds}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"


def format_summary(result: BatchResult) -> str:
    """Human-readable batch report."""
    fmt = "%Y-%m-%d %H:%M:%S"
    ended = result.end_time.strftime(fmt) if result.end_time else "(running)"
    lines = [
        "=== Batch Processing Report ===",
        f"Started  : {result.start_time.strftime(fmt)}",
        f"Ended    : {ended}",
        f"Duration : {_format_duration(result.total_duration_ms)}",
        "",
        f"Total files : {result.total_files}",
        f"Successful  : {len(result.successful)} ({result.success_rate * 100:.1f}%)",
        f"Failed      : {len(result.failed)}",
        "",
        f"Estimated cost : ${result.total_estimated_cost:.4f}",
        f"Actual cost    : ${result.total_actual_cost:.4f}",
    ]
    if result.successful:
        lines += ["", "Successful files:"]
        for r in result.successful:
            note = " (already complete)" if r.already_complete else ""
            lines.append(
                f"  + {r.item_id}: {r.chunk_count} chunks, {r.summary_count} summaries, "
                f"{_format_duration(r.duration_ms)}, ${r.actual_cost:.4f}{note}"
            )
    if result.failed:
        lines += ["", "Failed files:"]
        for r in result.failed:
            lines.append(f"  - {r.item_id}: {r.error_message}")
    return "\n".join(lines)


def write_reports(result: BatchResult, output_dir: Path) -> tuple[Path, Path]:
    """Write batch_report.json and batch_report.csv under output_dir."""
    json_path = layout.batch_report_json_path(output_dir)
    csv_path = layout.batch_report_csv_path(output_dir)
    atomic_write_text(json_path, to_json(result))
    atomic_write_text(csv_path, to_csv(result))
    logger.info("Batch reports written to %s and %s", json_path, csv_path)
    return json_path, csv_path
