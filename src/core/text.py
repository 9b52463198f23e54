# src/core/text.py — v1
"""Plain-text helpers: cleaning, token estimates, truncation, JSON extraction."""

from __future__ import annotations

import math
import re

# Average words per token (approximation for English).
WORDS_PER_TOKEN = 0.75

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_EXTRA_BLANK_LINES = re.compile(r"\n\s*\n\s*\n+")


def clean_text(text: str | None) -> str:
    """Normalize line endings, collapse runs of blank lines, strip."""
    if not text:
        return ""
    text = text.replace("\r\n", "\n")
    text = _EXTRA_BLANK_LINES.sub("\n\n", text)
    return text.strip()


def estimate_tokens(text: str | None) -> int:
    """Estimate token count as ceil(words / 0.75)."""
    if not text or not text.strip():
        return 0
    return math.ceil(len(text.split()) / WORDS_PER_TOKEN)


def split_paragraphs(text: str) -> list[str]:
    """Split on blank lines, dropping empty paragraphs."""
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def truncate_to_tokens(text: str, max_tokens: int) -> str:
    """Cut text to roughly ``max_tokens`` tokens on a word boundary.

    Text already within budget is returned unchanged (whitespace included).
    """
    if estimate_tokens(text) <= max_tokens:
        return text
    max_words = int(max_tokens * WORDS_PER_TOKEN)
    return " ".join(text.split()[:max_words])


def first_words(text: str, count: int) -> str:
    """Return the first ``count`` words joined by single spaces."""
    return " ".join(text.split()[:count])


def extract_json_object(text: str) -> str:
    """Return the substring from the first '{' to the last '}'.

    Tolerates markdown fences and chatter around the object.

    Raises:
        ValueError: If no braces delimit an object.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise ValueError(f"No JSON object found in response: {text[:200]!r}")
    return text[start : end + 1]
