# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings. Only main.py and
config/pipeline_config.py read it; pipeline components receive the frozen
PipelineConfig built from it.
"""

from __future__ import annotations

from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from transcriptflow.llm.config import normalize_provider


class ConfigurationError(Exception):
    """Raised when configuration is invalid or internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === PROVIDER CREDENTIALS ===
    claude_api_key: str = ""
    openai_api_key: str = ""
    gemini_api_key: str = ""

    # === MODELS ===
    model_claude: str = "claude-3-5-sonnet-20241022"
    model_gpt: str = "gpt-4o"
    model_gemini: str = "gemini-2.5-flash"

    # === ENDPOINTS ===
    claude_api_base: str = "https://api.anthropic.com/v1"
    openai_api_base: str = "https://api.openai.com/v1"
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta/openai/"

    # bearer | custom_header (x-api-key) | native_key (x-goog-api-key)
    claude_auth_style: Literal["bearer", "custom_header", "native_key"] = "bearer"
    openai_auth_style: Literal["bearer", "custom_header", "native_key"] = "bearer"
    gemini_auth_style: Literal["bearer", "custom_header", "native_key"] = "native_key"

    # === ROLE ASSIGNMENT ===
    summarizer_model: str = "claude"
    consolidator_model: str = "gpt"
    materializer_model: str = ""  # empty = same as consolidator

    # === PATHS ===
    transcript_dir: str = "transcripts"
    output_dir: str = "output"

    # === CHUNKING ===
    chunk_size: int = 1500
    chunk_overlap: int = 200

    # === NETWORK / RETRY ===
    api_timeout_ms: int = 60000
    max_retries: int = 3
    retry_backoff_ms: int = 1000
    chunk_call_delay_ms: int = 1000

    # === GENERATION ===
    max_tokens: int = 4096
    temperature: float = 0.7

    # === LOGGING ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: str | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validation ---

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Cross-field validation; collects every problem before raising."""
        errors: list[str] = []

        if self.chunk_size <= 0:
            errors.append("CHUNK_SIZE must be > 0")
        if self.chunk_overlap < 0:
            errors.append("CHUNK_OVERLAP must be >= 0")
        elif self.chunk_overlap >= self.chunk_size:
            errors.append("CHUNK_OVERLAP must be < CHUNK_SIZE")

        if self.max_retries < 0:
            errors.append("MAX_RETRIES must be >= 0")
        if self.retry_backoff_ms < 0:
            errors.append("RETRY_BACKOFF_MS must be >= 0")
        if self.api_timeout_ms <= 0:
            errors.append("API_TIMEOUT_MS must be > 0")
        if self.chunk_call_delay_ms < 0:
            errors.append("CHUNK_CALL_DELAY_MS must be >= 0")

        for field_name in ("summarizer_model", "consolidator_model", "materializer_model"):
            value = getattr(self, field_name)
            if field_name == "materializer_model" and not value:
                continue
            if normalize_provider(value) is None:
                errors.append(
                    f"{field_name.upper()} must be one of claude, gpt, gemini "
                    f"(got {value!r})"
                )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-run config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
