"""Documentor: crash-safe run coordination for documentation runs."""

__version__ = "0.1.0"
