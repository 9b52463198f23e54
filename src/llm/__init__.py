# src/llm/__init__.py — v1
"""Provider clients, errors and retry policy."""
