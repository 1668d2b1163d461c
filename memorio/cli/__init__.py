"""Command-line interface for mastery tracking."""

from .mastery_cli import app, main

__all__ = ["app", "main"]
