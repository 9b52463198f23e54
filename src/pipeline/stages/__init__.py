# src/pipeline/stages/__init__.py — v1
"""Stage implementations."""
