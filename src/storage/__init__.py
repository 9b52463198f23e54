# src/storage/__init__.py — v1
"""Artifact and state persistence."""
