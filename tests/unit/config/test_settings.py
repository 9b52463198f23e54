# tests/unit/config/test_settings.py — v2
"""Tests for config/settings.py — typed Settings and validation rules."""

from __future__ import annotations

import pytest

from transcriptflow.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_default_roles(self):
        s = Settings(_env_file=None)
        assert s.summarizer_model == "claude"
        assert s.consolidator_model == "gpt"
        assert s.materializer_model == ""

    def test_default_chunking(self):
        s = Settings(_env_file=None)
        assert s.chunk_size == 1500
        assert s.chunk_overlap == 200

    def test_default_retry(self):
        s = Settings(_env_file=None)
        assert s.max_retries == 3
        assert s.retry_backoff_ms == 1000
        assert s.api_timeout_ms == 60000

    def test_default_auth_styles(self):
        s = Settings(_env_file=None)
        assert s.claude_auth_style == "bearer"
        assert s.openai_auth_style == "bearer"
        assert s.gemini_auth_style == "native_key"

    def test_default_logging(self):
        s = Settings(_env_file=None)
        assert s.log_level == "INFO"
        assert s.log_format == "text"
        assert s.log_file is None


class TestSettingsValidation:
    def test_overlap_not_below_size(self):
        with pytest.raises(ConfigurationError, match="CHUNK_OVERLAP must be < CHUNK_SIZE"):
            Settings(_env_file=None, chunk_size=100, chunk_overlap=100)

    def test_negative_overlap(self):
        with pytest.raises(ConfigurationError, match="CHUNK_OVERLAP must be >= 0"):
            Settings(_env_file=None, chunk_overlap=-1)

    def test_negative_retries(self):
        with pytest.raises(ConfigurationError, match="MAX_RETRIES"):
            Settings(_env_file=None, max_retries=-1)

    def test_negative_backoff(self):
        with pytest.raises(ConfigurationError, match="RETRY_BACKOFF_MS"):
            Settings(_env_file=None, retry_backoff_ms=-10)

    def test_zero_timeout(self):
        with pytest.raises(ConfigurationError, match="API_TIMEOUT_MS"):
            Settings(_env_file=None, api_timeout_ms=0)

    def test_unknown_role_provider(self):
        with pytest.raises(ConfigurationError, match="SUMMARIZER_MODEL"):
            Settings(_env_file=None, summarizer_model="mistral")

    def test_provider_alias_accepted(self):
        s = Settings(_env_file=None, consolidator_model="openai")
        assert s.consolidator_model == "openai"

    def test_collects_every_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(_env_file=None, max_retries=-1, retry_backoff_ms=-1)
        assert "MAX_RETRIES" in str(exc_info.value)
        assert "RETRY_BACKOFF_MS" in str(exc_info.value)

    def test_zero_retries_allowed(self):
        assert Settings(_env_file=None, max_retries=0).max_retries == 0


class TestEnvironment:
    def test_reads_env_vars(self, monkeypatch):
        monkeypatch.setenv("CLAUDE_API_KEY", "sk-ant-env")
        monkeypatch.setenv("MAX_RETRIES", "5")
        s = Settings(_env_file=None)
        assert s.claude_api_key == "sk-ant-env"
        assert s.max_retries == 5

    def test_reads_env_file(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("OPENAI_API_KEY=sk-file\nCHUNK_SIZE=900\nUNRELATED=1\n")
        s = Settings(_env_file=env)
        assert s.openai_api_key == "sk-file"
        assert s.chunk_size == 900


class TestLoadSettings:
    def test_overrides(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        s = load_settings(output_dir="elsewhere", max_retries=1)
        assert s.output_dir == "elsewhere"
        assert s.max_retries == 1
