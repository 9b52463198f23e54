# src/config/__init__.py — v1
"""Settings, pipeline configuration and pre-flight checks."""
