# src/llm/config.py — v2
"""Stage-role → provider routing with cascade resolution.

Resolution order for a role:
  1. Explicit per-role setting (SUMMARIZER_MODEL, CONSOLIDATOR_MODEL, ...)
  2. The role's fallback role (materializer → consolidator)
  3. Hardcoded default (summarizer → claude, others → gpt)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from transcriptflow.config.settings import Settings

# Canonical provider names used as keys everywhere else.
PROVIDERS = ("claude", "gpt", "gemini")

_ALIASES: dict[str, str] = {
    "claude": "claude",
    "anthropic": "claude",
    "gpt": "gpt",
    "openai": "gpt",
    "gemini": "gemini",
    "google": "gemini",
}

ROLES = ("summarizer", "consolidator", "materializer")

_ROLE_FALLBACK: dict[str, str] = {"materializer": "consolidator"}

_DEFAULT_PROVIDER: dict[str, str] = {
    "summarizer": "claude",
    "consolidator": "gpt",
    "materializer": "gpt",
}


@dataclass(frozen=True)
class RoleAssignment:
    """Resolved provider for a stage role."""

    role: str
    provider: str
    source: str  # "role", "fallback", or "default"


def normalize_provider(name: str) -> str | None:
    """Return the canonical provider name, or None if unknown."""
    return _ALIASES.get(name.strip().lower()) if name else None


def resolve_role(role: str, settings: Settings) -> RoleAssignment:
    """Resolve which provider serves a role.

    Raises:
        ValueError: If role is not one of ROLES.
    """
    if role not in ROLES:
        raise ValueError(f"Unknown role {role!r}; expected one of {', '.join(ROLES)}")

    # Level 1: explicit setting
    explicit = normalize_provider(getattr(settings, f"{role}_model", ""))
    if explicit:
        return RoleAssignment(role=role, provider=explicit, source="role")

    # Level 2: fallback role
    fallback_role = _ROLE_FALLBACK.get(role)
    if fallback_role:
        inherited = normalize_provider(getattr(settings, f"{fallback_role}_model", ""))
        if inherited:
            return RoleAssignment(role=role, provider=inherited, source="fallback")

    # Level 3: default
    return RoleAssignment(role=role, provider=_DEFAULT_PROVIDER[role], source="default")


def resolve_all_roles(settings: Settings) -> dict[str, str]:
    """Resolve every role. Returns {role: provider}."""
    return {role: resolve_role(role, settings).provider for role in ROLES}
