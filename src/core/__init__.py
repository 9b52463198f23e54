# src/core/__init__.py — v1
"""Shared domain models and text helpers."""
