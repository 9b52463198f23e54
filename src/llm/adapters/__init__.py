# src/llm/adapters/__init__.py — v1
"""Per-provider HTTP adapters."""
