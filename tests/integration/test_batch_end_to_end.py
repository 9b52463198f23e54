# tests/integration/test_batch_end_to_end.py — v2
"""Batch runs over a directory with one broken transcript."""

from __future__ import annotations

import csv

import pytest

from transcriptflow.batch.report import write_reports
from transcriptflow.batch.runner import BatchRunner
from transcriptflow.batch.scanner import BatchScanner
from transcriptflow.pipeline.checkpoint import RunCheckpoint
from transcriptflow.pipeline.llm_factory import LLMFactory
from transcriptflow.pipeline.runner import ItemPipelineRunner
from transcriptflow.pipeline.state import OverallStatus, StageStatus
from transcriptflow.storage.state_store import StateStore


@pytest.fixture
def transcript_dir(tmp_path, transcript_text):
    directory = tmp_path / "transcripts"
    directory.mkdir(exist_ok=True)
    (directory / "a_lecture.txt").write_text(transcript_text)
    (directory / "b_blank.txt").write_text("   \n\n  ")
    (directory / "c_lecture.txt").write_text(transcript_text)
    return directory


async def _run_batch(config, http_client, sleep, directory):
    checkpoint = RunCheckpoint.open(StateStore(config.output_dir))
    factory = LLMFactory(config, http_client=http_client)
    runner = ItemPipelineRunner.from_config(config, checkpoint, factory, sleep=sleep)
    try:
        result = await BatchRunner(runner, roles=config.roles).run(BatchScanner().scan(directory))
    finally:
        status = checkpoint.finish()
        await factory.aclose()
    return result, status


@pytest.fixture
def nested_dir(tmp_path, transcript_text):
    directory = tmp_path / "terms"
    for term in ("a", "b"):
        (directory / term).mkdir(parents=True)
        (directory / term / "lecture.txt").write_text(transcript_text)
    return directory


class TestBatchEndToEnd:
    @pytest.mark.asyncio
    async def test_broken_item_isolated(self, mixed_config, http_client, recording_sleep, transcript_dir):
        result, status = await _run_batch(mixed_config, http_client, recording_sleep, transcript_dir)

        assert [r.item_id for r in result.successful] == ["a_lecture.txt", "c_lecture.txt"]
        assert [r.item_id for r in result.failed] == ["b_blank.txt"]
        assert result.failed[0].failed_stage == "chunking"
        assert status is OverallStatus.FAILED

        saved = StateStore(mixed_config.output_dir).load()
        assert saved.items["a_lecture.txt"].is_complete
        assert saved.items["b_blank.txt"].chunking is StageStatus.FAILED

        json_path, csv_path = write_reports(result, mixed_config.output_dir)
        rows = list(csv.DictReader(csv_path.open()))
        assert [r["status"] for r in rows] == ["success", "success", "failed"]
        assert json_path.is_file()

    @pytest.mark.asyncio
    async def test_rerun_after_fix_completes_and_cleans_up(
        self, mixed_config, http_client, fake_providers, recording_sleep, transcript_dir, transcript_text,
    ):
        await _run_batch(mixed_config, http_client, recording_sleep, transcript_dir)
        calls_after_first = fake_providers.count("claude.test")

        (transcript_dir / "b_blank.txt").write_text(transcript_text)
        result, status = await _run_batch(mixed_config, http_client, recording_sleep, transcript_dir)

        assert len(result.successful) == 3
        assert [r.already_complete for r in result.successful] == [True, False, True]
        # Only the repaired item was summarized again.
        assert fake_providers.count("claude.test") - calls_after_first == 3
        assert status is OverallStatus.COMPLETED
        assert not StateStore(mixed_config.output_dir).exists()

    @pytest.mark.asyncio
    async def test_same_filename_in_subdirectories_kept_apart(
        self, mixed_config, http_client, recording_sleep, nested_dir,
    ):
        checkpoint = RunCheckpoint.open(StateStore(mixed_config.output_dir))
        factory = LLMFactory(mixed_config, http_client=http_client)
        runner = ItemPipelineRunner.from_config(mixed_config, checkpoint, factory, sleep=recording_sleep)
        sources = BatchScanner().scan(nested_dir, recursive=True)
        try:
            result = await BatchRunner(runner, roles=mixed_config.roles).run(sources, root=nested_dir)
        finally:
            checkpoint.finish()
            await factory.aclose()

        assert [r.item_id for r in result.successful] == ["a/lecture.txt", "b/lecture.txt"]
        assert [r.already_complete for r in result.successful] == [False, False]
        assert result.failed == []
        out = mixed_config.output_dir
        assert (out / "chunks" / "a__lecture_chunks.json").is_file()
        assert (out / "chunks" / "b__lecture_chunks.json").is_file()
        assert (out / "consolidated" / "a__lecture_master_notes.md").is_file()
        assert (out / "consolidated" / "b__lecture_master_notes.md").is_file()
