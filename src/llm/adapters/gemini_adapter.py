# src/llm/adapters/gemini_adapter.py — v1
"""Google Gemini adapter through the OpenAI-compatible endpoint.

Request and response shapes are the chat-completions ones; only the
provider name and the default key header (``x-goog-api-key``, set via
``AuthStyle.NATIVE_KEY``) differ.
"""

from __future__ import annotations

from transcriptflow.llm.adapters.openai_adapter import OpenAIAdapter


class GeminiAdapter(OpenAIAdapter):
    """Gemini adapter (OpenAI-compatible mode)."""

    @property
    def provider_name(self) -> str:
        return "gemini"
