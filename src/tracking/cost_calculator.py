# src/tracking/cost_calculator.py — v2
"""Cost estimation and actual-cost computation.

Pricing is per provider family, per 1M tokens. Unknown providers are
priced like claude (the most expensive family) so estimates err high.
"""

from __future__ import annotations

import math

from transcriptflow.tracking.models import CostEstimate, LLMCallRecord, ModelPricing

DEFAULT_PRICING: dict[str, ModelPricing] = {
    "claude": ModelPricing(provider="claude", input_price_per_1m=3.0, output_price_per_1m=15.0),
    "gpt": ModelPricing(provider="gpt", input_price_per_1m=2.50, output_price_per_1m=10.0),
    "gemini": ModelPricing(provider="gemini", input_price_per_1m=0.15, output_price_per_1m=0.60),
}

# Adapters report "openai" as their provider name.
_PROVIDER_FAMILY = {"openai": "gpt", "anthropic": "claude", "google": "gemini"}

# Estimate parameters.
TOKENS_PER_CHUNK = 1500
PROMPT_TOKENS_PER_CHUNK = 200
SUMMARY_TOKENS_PER_CHUNK = 300
CONSOLIDATION_PROMPT_TOKENS = 500
MASTER_NOTES_TOKENS = 2000
MATERIALS_INPUT_TOKENS = MASTER_NOTES_TOKENS * 3
MATERIALS_OUTPUT_TOKENS = 3000 + 2000 + 800  # flashcards + questions + revision


def _pricing_for(provider: str, pricing: dict[str, ModelPricing]) -> ModelPricing:
    family = _PROVIDER_FAMILY.get(provider.lower(), provider.lower())
    return pricing.get(family) or DEFAULT_PRICING["claude"]


def compute_tokens_cost(
    input_tokens: int,
    output_tokens: int,
    provider: str,
    pricing: dict[str, ModelPricing] | None = None,
) -> float:
    """USD cost of a token count on a provider family."""
    p = _pricing_for(provider, pricing or DEFAULT_PRICING)
    return (
        input_tokens * p.input_price_per_1m / 1_000_000
        + output_tokens * p.output_price_per_1m / 1_000_000
    )


def compute_call_cost(record: LLMCallRecord, pricing: dict[str, ModelPricing] | None = None) -> float:
    """Compute cost for a single provider call in USD."""
    return compute_tokens_cost(record.input_tokens, record.output_tokens, record.provider, pricing)


def estimate_item_cost(
    transcript_tokens: int,
    summarizer: str,
    consolidator: str,
    materializer: str | None = None,
    pricing: dict[str, ModelPricing] | None = None,
) -> CostEstimate:
    """Estimate the cost of running one transcript through all stages.

    Chunking is local. Each ~1500-token chunk costs its text plus a prompt
    overhead in, and ~300 summary tokens out. Consolidation reads all
    summaries and writes ~2000 tokens of notes. The three exam materials
    each re-read the notes.
    """
    materializer = materializer or consolidator
    num_chunks = math.ceil(transcript_tokens / TOKENS_PER_CHUNK) if transcript_tokens > 0 else 0

    summarization_cost = compute_tokens_cost(
        transcript_tokens + num_chunks * PROMPT_TOKENS_PER_CHUNK,
        num_chunks * SUMMARY_TOKENS_PER_CHUNK,
        summarizer, pricing,
    )
    consolidation_cost = compute_tokens_cost(
        num_chunks * SUMMARY_TOKENS_PER_CHUNK + CONSOLIDATION_PROMPT_TOKENS,
        MASTER_NOTES_TOKENS,
        consolidator, pricing,
    )
    materials_cost = compute_tokens_cost(
        MATERIALS_INPUT_TOKENS, MATERIALS_OUTPUT_TOKENS, materializer, pricing,
    )
    return CostEstimate(
        transcript_tokens=transcript_tokens,
        num_chunks=num_chunks,
        summarizer=summarizer,
        consolidator=consolidator,
        materializer=materializer,
        summarization_cost=summarization_cost,
        consolidation_cost=consolidation_cost,
        materials_cost=materials_cost,
    )
