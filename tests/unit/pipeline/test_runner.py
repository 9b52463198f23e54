# tests/unit/pipeline/test_runner.py — v3
"""Tests for pipeline/runner.py — stage ordering, persistence and resume."""

from __future__ import annotations

import pytest

from transcriptflow.llm.errors import AuthError, ServerError
from transcriptflow.pipeline.checkpoint import RunCheckpoint
from transcriptflow.pipeline.errors import StageFailedError
from transcriptflow.pipeline.runner import ItemPipelineRunner
from transcriptflow.pipeline.stages.summarizer import SummarizerStage
from transcriptflow.pipeline.state import Stage, StageStatus
from transcriptflow.storage.state_store import StateStore


@pytest.fixture
def clients(make_client, summary_reply):
    return {
        "summarizer": make_client(reply=summary_reply()),
        "consolidator": make_client(reply="# Master Notes\n\nAll of it.", provider="openai"),
        "materializer": make_client(reply="material", provider="openai"),
    }


def _runner(config, clients, sleep, checkpoint=None) -> ItemPipelineRunner:
    checkpoint = checkpoint or RunCheckpoint.open(StateStore(config.output_dir))
    return ItemPipelineRunner.from_config(config, checkpoint, clients.__getitem__, sleep=sleep)


class TestConstruction:
    def test_missing_stage_rejected(self, pipeline_config):
        checkpoint = RunCheckpoint(StateStore(pipeline_config.output_dir))
        with pytest.raises(ValueError, match="No implementation"):
            ItemPipelineRunner(checkpoint, [], pipeline_config.output_dir)


class TestFullRun:
    @pytest.mark.asyncio
    async def test_all_stages(self, pipeline_config, clients, recording_sleep, transcript_file):
        runner = _runner(pipeline_config, clients, recording_sleep)
        outcome = await runner.run_item(transcript_file.name, transcript_file)

        assert outcome.stages_run == ["chunking", "summarization", "consolidation", "materialization"]
        assert not outcome.skipped
        assert outcome.chunk_count == 3
        assert outcome.summary_count == 3
        assert outcome.materials_count == 3
        assert outcome.actual_cost > 0
        assert len(clients["summarizer"].calls) == 3
        assert len(clients["consolidator"].calls) == 1
        assert len(clients["materializer"].calls) == 3

        item = runner.checkpoint.state.items["lecture1.txt"]
        assert item.is_complete
        assert item.materials_output == "exam_materials/lecture1"
        out = pipeline_config.output_dir
        assert (out / "chunks" / "lecture1_chunks.json").is_file()
        assert (out / "consolidated" / "lecture1_master_notes.md").is_file()
        assert (out / "calls" / "lecture1_calls.jsonl").is_file()
        assert not StateStore(out).exists()

    @pytest.mark.asyncio
    async def test_state_persisted_before_remote_call(
        self, pipeline_config, clients, recording_sleep, transcript_file, summary_reply,
    ):
        store = StateStore(pipeline_config.output_dir)
        seen: list[StageStatus] = []

        def reply(user_prompt: str) -> str:
            seen.append(store.load().items["lecture1.txt"].summarization)
            return summary_reply()

        clients["summarizer"]._reply = reply
        await _runner(pipeline_config, clients, recording_sleep).run_item(transcript_file.name, transcript_file)
        assert seen == [StageStatus.IN_PROGRESS] * 3
        assert not store.exists()

    @pytest.mark.asyncio
    async def test_idempotent_when_complete(self, pipeline_config, clients, recording_sleep, transcript_file):
        runner = _runner(pipeline_config, clients, recording_sleep)
        await runner.run_item(transcript_file.name, transcript_file)
        before = runner.checkpoint.state.items["lecture1.txt"].model_dump()
        calls_before = {role: len(c.calls) for role, c in clients.items()}

        outcome = await runner.run_item(transcript_file.name, transcript_file)

        assert outcome.skipped
        assert outcome.stages_run == []
        assert {role: len(c.calls) for role, c in clients.items()} == calls_before
        assert runner.checkpoint.state.items["lecture1.txt"].model_dump() == before
        assert not StateStore(pipeline_config.output_dir).exists()


class TestFailure:
    @pytest.mark.asyncio
    async def test_failure_stops_item(self, pipeline_config, clients, recording_sleep, transcript_file, make_client):
        clients["summarizer"] = make_client(failures=[AuthError("invalid key", provider="claude")])
        runner = _runner(pipeline_config, clients, recording_sleep)

        with pytest.raises(StageFailedError) as exc_info:
            await runner.run_item(transcript_file.name, transcript_file)

        assert exc_info.value.stage == "summarization"
        assert isinstance(exc_info.value.cause, AuthError)
        assert clients["consolidator"].calls == []

        saved = StateStore(pipeline_config.output_dir).load().items["lecture1.txt"]
        assert saved.chunking is StageStatus.COMPLETED
        assert saved.summarization is StageStatus.FAILED
        assert saved.consolidation is StageStatus.NOT_STARTED
        assert saved.error_message == "AuthError: invalid key"

    @pytest.mark.asyncio
    async def test_missing_source_fails_chunking(self, pipeline_config, clients, recording_sleep, tmp_path):
        runner = _runner(pipeline_config, clients, recording_sleep)
        with pytest.raises(StageFailedError, match="source file not found"):
            await runner.run_item("ghost.txt", tmp_path / "ghost.txt")
        assert runner.checkpoint.state.items["ghost.txt"].chunking is StageStatus.FAILED

    @pytest.mark.asyncio
    async def test_cleanup_error_recorded_as_stage_failure(
        self, pipeline_config, clients, recording_sleep, transcript_file, monkeypatch,
    ):
        async def locked(self, job):
            raise PermissionError("summaries directory is locked")

        monkeypatch.setattr(SummarizerStage, "discard_partial", locked)
        runner = _runner(pipeline_config, clients, recording_sleep)

        with pytest.raises(StageFailedError) as exc_info:
            await runner.run_item(transcript_file.name, transcript_file)

        assert exc_info.value.stage == "summarization"
        assert isinstance(exc_info.value.cause, PermissionError)
        assert clients["summarizer"].calls == []
        saved = StateStore(pipeline_config.output_dir).load().items["lecture1.txt"]
        assert saved.summarization is StageStatus.FAILED
        assert saved.error_message == "PermissionError: summaries directory is locked"


class TestResume:
    @pytest.mark.asyncio
    async def test_resumes_at_failed_stage_with_reloaded_outputs(
        self, pipeline_config, clients, recording_sleep, transcript_file, make_client, summary_reply,
    ):
        failing = dict(clients, consolidator=make_client(failures=[AuthError("expired")]))
        with pytest.raises(StageFailedError):
            await _runner(pipeline_config, failing, recording_sleep).run_item(transcript_file.name, transcript_file)

        saved = StateStore(pipeline_config.output_dir).load().items["lecture1.txt"]
        assert [saved.status_of(s) for s in Stage] == [
            StageStatus.COMPLETED, StageStatus.COMPLETED, StageStatus.FAILED, StageStatus.NOT_STARTED,
        ]

        # New process: fresh checkpoint from disk and fresh clients.
        fresh_clients = {
            "summarizer": make_client(reply=summary_reply()),
            "consolidator": make_client(reply="# Notes"),
            "materializer": make_client(reply="material"),
        }
        runner = _runner(pipeline_config, fresh_clients, recording_sleep)
        outcome = await runner.run_item(transcript_file.name)

        assert outcome.stages_run == ["consolidation", "materialization"]
        assert fresh_clients["summarizer"].calls == []
        _, consolidation_prompt = fresh_clients["consolidator"].calls[0]
        assert "Summary of Topic." in consolidation_prompt
        assert outcome.summary_count == 3
        assert not StateStore(pipeline_config.output_dir).exists()

    @pytest.mark.asyncio
    async def test_unreadable_artifact_reruns_from_that_stage(
        self, pipeline_config, clients, recording_sleep, transcript_file, make_client,
    ):
        failing = dict(clients, consolidator=make_client(failures=[AuthError("expired")]))
        with pytest.raises(StageFailedError):
            await _runner(pipeline_config, failing, recording_sleep).run_item(transcript_file.name, transcript_file)

        (pipeline_config.output_dir / "summaries" / "lecture1" / "chunk_2.json").write_text("{garbage")

        calls_before = len(clients["summarizer"].calls)
        runner = _runner(pipeline_config, clients, recording_sleep)
        outcome = await runner.run_item(transcript_file.name)
        assert outcome.stages_run == ["summarization", "consolidation", "materialization"]
        assert len(clients["summarizer"].calls) - calls_before == 3

    @pytest.mark.asyncio
    async def test_partial_output_discarded_before_rerun(
        self, pipeline_config, clients, recording_sleep, transcript_file, make_client, summary_reply,
    ):
        def flaky(user_prompt: str) -> str:
            if "Chunk ID: 2" in user_prompt:
                raise AuthError("revoked")
            return summary_reply()

        failing = dict(clients, summarizer=make_client(reply=flaky))
        with pytest.raises(StageFailedError):
            await _runner(pipeline_config, failing, recording_sleep).run_item(transcript_file.name, transcript_file)

        summaries_dir = pipeline_config.output_dir / "summaries" / "lecture1"
        assert [p.name for p in summaries_dir.iterdir()] == ["chunk_1.json"]
        (summaries_dir / "chunk_9.json").write_text("{}")

        await _runner(pipeline_config, clients, recording_sleep).run_item(transcript_file.name)
        assert sorted(p.name for p in summaries_dir.iterdir()) == [
            "chunk_1.json", "chunk_2.json", "chunk_3.json",
        ]

    @pytest.mark.asyncio
    async def test_interrupted_in_progress_stage_rerun(
        self, pipeline_config, clients, recording_sleep, transcript_file,
    ):
        store = StateStore(pipeline_config.output_dir)
        checkpoint = RunCheckpoint.open(store)
        item = checkpoint.register(transcript_file.name, str(transcript_file))
        checkpoint.begin_stage(item, Stage.CHUNKING)  # crash here

        runner = _runner(pipeline_config, clients, recording_sleep)
        outcome = await runner.run_item(transcript_file.name)
        assert outcome.stages_run[0] == "chunking"
        assert runner.checkpoint.state.items[transcript_file.name].is_complete


class TestEndToEndRetry:
    @pytest.mark.asyncio
    async def test_summarizer_fails_twice_then_succeeds(
        self, pipeline_config, clients, recording_sleep, tmp_path, make_client, summary_reply,
    ):
        source = tmp_path / "short.txt"
        source.write_text("A single short paragraph about routers and packets.")
        clients["summarizer"] = make_client(
            reply=summary_reply(), failures=[ServerError("503"), ServerError("503")],
        )
        runner = _runner(pipeline_config, clients, recording_sleep)
        await runner.run_item(source.name, source)

        assert runner.checkpoint.state.items["short.txt"].summarization is StageStatus.COMPLETED
        assert len(clients["summarizer"].calls) == 3
        assert recording_sleep.delays == [1.0, 2.0]
