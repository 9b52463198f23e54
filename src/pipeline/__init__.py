# src/pipeline/__init__.py — v1
"""Item pipeline: state, checkpoint, stages, runner."""
