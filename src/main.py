# src/main.py — v3
"""CLI entry point — run, status, reset, batch, check-keys commands.

Usage:
    transcriptflow run <file> [--fresh]
    transcriptflow status
    transcriptflow reset
    transcriptflow batch [directory] [--recursive]
    transcriptflow check-keys
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from transcriptflow.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    from transcriptflow.config.settings import ConfigurationError, load_settings
    from transcriptflow.logging.logger import setup_logging

    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    overrides: dict[str, object] = {}
    if args.output:
        overrides["output_dir"] = str(args.output)
    try:
        settings = load_settings(**overrides)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    setup_logging(
        level="DEBUG" if args.verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user; progress is saved, run again to resume")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="transcriptflow",
        description=f"transcriptflow v{__version__} — transcripts to study notes and exam materials",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Output directory (default: OUTPUT_DIR setting)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- run ---
    p_run = subparsers.add_parser("run", help="Process a single transcript")
    p_run.add_argument("file", type=Path, help="Transcript path (or name inside TRANSCRIPT_DIR)")
    p_run.add_argument(
        "--fresh", action="store_true",
        help="Discard any saved progress and start over",
    )
    p_run.set_defaults(func=_cmd_run)

    # --- status ---
    p_status = subparsers.add_parser("status", help="Show saved pipeline progress")
    p_status.set_defaults(func=_cmd_status)

    # --- reset ---
    p_reset = subparsers.add_parser("reset", help="Delete saved pipeline progress")
    p_reset.set_defaults(func=_cmd_reset)

    # --- batch ---
    p_batch = subparsers.add_parser("batch", help="Process every transcript in a directory")
    p_batch.add_argument(
        "directory", type=Path, nargs="?", default=None,
        help="Directory to scan (default: TRANSCRIPT_DIR setting)",
    )
    p_batch.add_argument(
        "--recursive", action="store_true",
        help="Include subdirectories",
    )
    p_batch.add_argument(
        "--fresh", action="store_true",
        help="Discard any saved progress and start over",
    )
    p_batch.set_defaults(func=_cmd_batch)

    # --- check-keys ---
    p_keys = subparsers.add_parser("check-keys", help="Test every configured API key")
    p_keys.set_defaults(func=_cmd_check_keys)

    return parser


def _resolve_transcript(path: Path, transcript_dir: Path) -> Path:
    """Accept either a path or a bare name inside the transcripts directory."""
    if path.exists() or path.is_absolute():
        return path
    candidate = transcript_dir / path
    return candidate if candidate.exists() else path


def _print_validation(results: list) -> None:
    for result in results:
        if result.severity != "ok" or result.details:
            print(result.format())


async def _cmd_run(args: argparse.Namespace, settings: object) -> int:
    """Run one transcript through the pipeline, resuming saved progress."""
    from transcriptflow.config.pipeline_config import build_pipeline_config
    from transcriptflow.config.validation import has_errors, run_preflight
    from transcriptflow.core.text import clean_text, estimate_tokens
    from transcriptflow.llm.errors import ProviderError
    from transcriptflow.llm.key_check import remediation_hint
    from transcriptflow.logging.context import set_run_context
    from transcriptflow.pipeline.checkpoint import RunCheckpoint
    from transcriptflow.pipeline.errors import StageFailedError
    from transcriptflow.pipeline.llm_factory import LLMFactory
    from transcriptflow.pipeline.runner import ItemPipelineRunner
    from transcriptflow.storage.state_store import StateStore
    from transcriptflow.tracking.cost_calculator import estimate_item_cost

    config = build_pipeline_config(settings)
    source = _resolve_transcript(args.file, config.transcript_dir)

    results = run_preflight(config, [source])
    _print_validation(results)
    if has_errors(results):
        print("Pre-flight checks failed; nothing was processed.")
        return 1

    estimate = estimate_item_cost(
        estimate_tokens(clean_text(source.read_text(encoding="utf-8"))),
        config.roles["summarizer"],
        config.roles["consolidator"],
        config.roles["materializer"],
    )
    print(estimate.format())

    store = StateStore(config.output_dir)
    if store.exists() and not args.fresh:
        print(f"Saved progress found in {store.path}; resuming (use --fresh to start over).")
    checkpoint = RunCheckpoint.open(store, fresh=args.fresh)
    set_run_context(checkpoint.state.run_id)

    factory = LLMFactory(config)
    runner = ItemPipelineRunner.from_config(config, checkpoint, factory)
    try:
        outcome = await runner.run_item(source.name, source)
    except StageFailedError as exc:
        print(f"\nFailed: {exc}")
        if isinstance(exc.cause, ProviderError):
            print(f"  → {remediation_hint(exc.cause, exc.cause.provider)}")
        print("Run the same command again to resume from the failed stage.")
        return 1
    finally:
        checkpoint.finish()
        await factory.aclose()

    if outcome.skipped:
        print(f"\n{source.name} was already fully processed.")
    else:
        print(f"\nCompleted {source.name}: {', '.join(outcome.stages_run)}")
    print(f"  Chunks:      {outcome.chunk_count}")
    print(f"  Summaries:   {outcome.summary_count}")
    if outcome.low_confidence_chunks:
        print(f"  Low confidence chunks: {', '.join(outcome.low_confidence_chunks)}")
    print(f"  Actual cost: ${outcome.actual_cost:.4f}")
    print(f"  Output:      {config.output_dir}")
    return 0


async def _cmd_status(args: argparse.Namespace, settings: object) -> int:
    """Print the saved run state, one line per item."""
    from transcriptflow.config.pipeline_config import build_pipeline_config
    from transcriptflow.pipeline.state import STAGE_ORDER
    from transcriptflow.storage.state_store import StateStore

    config = build_pipeline_config(settings)
    state = StateStore(config.output_dir).load()
    if state is None:
        print("No saved progress. The next run starts fresh.")
        return 0

    print(f"\nRun {state.run_id} ({state.overall_status.value})")
    print(f"  Started: {state.created_at:%Y-%m-%d %H:%M:%S}")
    print(f"  Updated: {state.updated_at:%Y-%m-%d %H:%M:%S}")
    for item in sorted(state.items.values(), key=lambda i: i.item_id):
        print(f"\n  {item.item_id}")
        for stage in STAGE_ORDER:
            print(f"    {stage.value:<16} {item.status_of(stage).value}")
        next_stage = item.next_stage()
        print(f"    next: {next_stage.value if next_stage else '(done)'}")
        if item.error_message:
            print(f"    error: {item.error_message}")
    return 0


async def _cmd_reset(args: argparse.Namespace, settings: object) -> int:
    """Delete the state file; artifacts already written are kept."""
    from transcriptflow.config.pipeline_config import build_pipeline_config
    from transcriptflow.storage.state_store import StateStore

    config = build_pipeline_config(settings)
    store = StateStore(config.output_dir)
    if not store.exists():
        print("No saved progress to reset.")
        return 0
    store.delete()
    print(f"Removed {store.path}")
    return 0


async def _cmd_batch(args: argparse.Namespace, settings: object) -> int:
    """Process a directory of transcripts and write batch reports."""
    from transcriptflow.batch.report import format_summary, write_reports
    from transcriptflow.batch.runner import BatchRunner
    from transcriptflow.batch.scanner import BatchScanner
    from transcriptflow.config.pipeline_config import build_pipeline_config
    from transcriptflow.config.validation import has_errors, run_preflight
    from transcriptflow.logging.context import set_run_context
    from transcriptflow.pipeline.checkpoint import RunCheckpoint
    from transcriptflow.pipeline.llm_factory import LLMFactory
    from transcriptflow.pipeline.runner import ItemPipelineRunner
    from transcriptflow.storage.state_store import StateStore

    config = build_pipeline_config(settings)
    directory: Path = args.directory or config.transcript_dir
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return 1

    results = run_preflight(config)
    _print_validation(results)
    if has_errors(results):
        print("Pre-flight checks failed; nothing was processed.")
        return 1

    sources = BatchScanner().scan(directory, recursive=args.recursive)
    checkpoint = RunCheckpoint.open(StateStore(config.output_dir), fresh=args.fresh)
    set_run_context(checkpoint.state.run_id)
    factory = LLMFactory(config)
    runner = ItemPipelineRunner.from_config(config, checkpoint, factory)
    try:
        batch_result = await BatchRunner(runner, roles=config.roles).run(sources, root=directory)
    finally:
        checkpoint.finish()
        await factory.aclose()

    json_path, csv_path = write_reports(batch_result, config.output_dir)
    print()
    print(format_summary(batch_result))
    print(f"\nReports: {json_path}, {csv_path}")
    return 1 if batch_result.failed else 0


async def _cmd_check_keys(args: argparse.Namespace, settings: object) -> int:
    """Send a test prompt to every provider with a key."""
    from transcriptflow.config.pipeline_config import build_pipeline_config
    from transcriptflow.llm.client_factory import create_llm_client
    from transcriptflow.llm.key_check import check_keys

    config = build_pipeline_config(settings)
    results = await check_keys(
        config.providers,
        lambda provider: create_llm_client(provider, timeout_s=config.timeout_s, max_tokens=16),
    )
    if not results:
        print("No API keys configured. Set CLAUDE_API_KEY, OPENAI_API_KEY or GEMINI_API_KEY.")
        return 1

    for r in results:
        if r.working:
            print(f"  {r.provider:<8} {r.model:<32} working")
        else:
            print(f"  {r.provider:<8} {r.model:<32} FAILED: {r.detail}")
            print(f"           → {r.hint}")
    return 0 if all(r.working for r in results) else 1


if __name__ == "__main__":
    sys.exit(main())
