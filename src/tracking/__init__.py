# src/tracking/__init__.py — v1
"""Provider call logging and cost tracking."""
