# src/chunking/__init__.py — v1
"""Local text chunking."""
