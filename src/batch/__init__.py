# src/batch/__init__.py — v1
"""Batch processing: scan, run, report."""
