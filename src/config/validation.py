# src/config/validation.py — v1
"""Pre-flight checks run before the pipeline starts.

Each check returns a ValidationResult; any ``error`` blocks the run,
``warning`` is reported and the run proceeds.
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from transcriptflow.config.pipeline_config import PipelineConfig

MAX_FILE_SIZE = 50_000_000
WARN_FILE_SIZE = 10_000_000
MIN_WORDS = 50

_KEY_ENV_VARS = {"claude": "CLAUDE_API_KEY", "gpt": "OPENAI_API_KEY", "gemini": "GEMINI_API_KEY"}
_KEY_PREFIXES = {"claude": "sk-ant-", "gpt": "sk-"}


@dataclass
class ValidationResult:
    """Outcome of one pre-flight check."""

    severity: Literal["ok", "warning", "error"]
    message: str
    hint: str = ""
    details: list[str] = field(default_factory=list)

    @property
    def is_error(self) -> bool:
        return self.severity == "error"

    def format(self) -> str:
        tag = {"ok": "OK", "warning": "WARN", "error": "ERROR"}[self.severity]
        lines = [f"[{tag}] {self.message}"]
        if self.hint:
            lines.append(f"       → {self.hint}")
        lines.extend(f"       · {d}" for d in self.details)
        return "\n".join(lines)


def _size_label(size: int) -> str:
    return f"{size / 1_000_000:.1f} MB"


def validate_transcript_file(path: Path) -> ValidationResult:
    """Check that a transcript exists, is a readable UTF-8 file, and is sized sensibly."""
    if not path.exists():
        return ValidationResult(
            "error", f"File not found: {path}",
            "Check the path, or place the file in the transcripts directory",
        )
    if not path.is_file():
        return ValidationResult("error", f"Not a file: {path}", "Specify a .txt file, not a directory")

    size = path.stat().st_size
    if size > MAX_FILE_SIZE:
        return ValidationResult(
            "error", f"File is too large ({_size_label(size)}): {path.name}",
            "Split the file into parts of at most 50 MB",
        )

    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return ValidationResult(
            "error", f"File is not valid UTF-8: {path.name}",
            "Re-save the transcript with UTF-8 encoding",
        )
    except OSError as exc:
        return ValidationResult("error", f"File is not readable: {path.name} ({exc})", "Check file permissions")

    if not content.strip():
        return ValidationResult(
            "error", f"File is empty: {path.name}",
            "Add transcript content to the file before processing",
        )

    result = ValidationResult("ok", f"File validation passed: {path.name}")
    if size > WARN_FILE_SIZE:
        result = ValidationResult(
            "warning", f"Large file detected ({_size_label(size)}): {path.name}",
            "This will take longer and cost more; consider splitting it",
        )
    if path.suffix.lower() != ".txt":
        result.details.append(f"Extension is {path.suffix or '(none)'}; the file is read as plain text")
    word_count = len(content.split())
    if word_count < MIN_WORDS:
        result.details.append(f"File has very few words ({word_count}); at least {MIN_WORDS} recommended")
    return result


def validate_api_keys(config: PipelineConfig) -> list[ValidationResult]:
    """Every provider assigned to a role must have a key."""
    results: list[ValidationResult] = []
    for provider in sorted(set(config.roles.values())):
        env_var = _KEY_ENV_VARS.get(provider, f"{provider.upper()}_API_KEY")
        roles = ", ".join(r for r, p in config.roles.items() if p == provider)
        provider_config = config.providers.get(provider)
        if provider_config is None or not provider_config.has_key:
            results.append(ValidationResult(
                "error", f"{env_var} is not configured (needed for {roles})",
                f"Set {env_var} in your .env file or environment",
            ))
            continue

        prefix = _KEY_PREFIXES.get(provider)
        if prefix and not provider_config.api_key.strip().startswith(prefix):
            results.append(ValidationResult(
                "warning", f"{env_var} does not look like a {provider} key",
                f"{provider} keys usually start with '{prefix}'",
            ))
        else:
            results.append(ValidationResult("ok", f"{env_var} is set ({roles})"))
    return results


def validate_output_directory(output_dir: Path) -> ValidationResult:
    """Create the output directory if needed and check it is writable."""
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=output_dir, prefix=".write_test", delete=True):
            pass
    except OSError as exc:
        return ValidationResult(
            "error", f"Output directory is not writable: {output_dir} ({exc})",
            "Choose another OUTPUT_DIR or fix its permissions",
        )
    return ValidationResult("ok", f"Output directory is writable: {output_dir}")


def run_preflight(config: PipelineConfig, transcripts: list[Path] | None = None) -> list[ValidationResult]:
    """All checks for a run: keys, output directory, then each transcript."""
    results = validate_api_keys(config)
    results.append(validate_output_directory(config.output_dir))
    for path in transcripts or []:
        results.append(validate_transcript_file(path))
    return results


def has_errors(results: list[ValidationResult]) -> bool:
    return any(r.is_error for r in results)
