# src/__init__.py — v1
"""transcriptflow: resumable transcript-to-study-materials pipeline."""

from transcriptflow.version import __version__

__all__ = ["__version__"]
