# src/config/pipeline_config.py — v1
"""Immutable runtime configuration built once from Settings.

Components take a PipelineConfig (or the piece they need) in their
constructor; nothing below main.py reads Settings or the environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from transcriptflow.config.settings import Settings
from transcriptflow.llm.config import PROVIDERS, resolve_all_roles
from transcriptflow.llm.models import AuthStyle, ProviderConfig
from transcriptflow.llm.retry import RetryPolicy


@dataclass(frozen=True)
class PipelineConfig:
    """Everything the pipeline needs, resolved up front."""

    providers: dict[str, ProviderConfig]
    roles: dict[str, str]
    output_dir: Path
    transcript_dir: Path = Path("transcripts")
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    chunk_size: int = 1500
    chunk_overlap: int = 200
    timeout_s: float = 60.0
    max_tokens: int = 4096
    temperature: float = 0.7
    chunk_call_delay_s: float = 1.0

    def provider_for(self, role: str) -> ProviderConfig:
        """Return the ProviderConfig serving a stage role.

        Raises:
            KeyError: If the role is not configured.
        """
        return self.providers[self.roles[role]]


def build_pipeline_config(settings: Settings) -> PipelineConfig:
    """Freeze Settings into a PipelineConfig."""
    providers = {
        name: ProviderConfig(
            name=name,
            base_url=getattr(settings, f"{_settings_prefix(name)}_api_base"),
            api_key=getattr(settings, f"{_settings_prefix(name)}_api_key"),
            model_id=getattr(settings, f"model_{name}"),
            auth_style=AuthStyle(getattr(settings, f"{_settings_prefix(name)}_auth_style")),
        )
        for name in PROVIDERS
    }
    return PipelineConfig(
        providers=providers,
        roles=resolve_all_roles(settings),
        output_dir=Path(settings.output_dir),
        transcript_dir=Path(settings.transcript_dir),
        retry=RetryPolicy(
            max_retries=settings.max_retries,
            initial_backoff_ms=settings.retry_backoff_ms,
        ),
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        timeout_s=settings.api_timeout_ms / 1000,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        chunk_call_delay_s=settings.chunk_call_delay_ms / 1000,
    )


def _settings_prefix(provider: str) -> str:
    # Keys and endpoints are named after the vendor, models after the family.
    return "openai" if provider == "gpt" else provider
