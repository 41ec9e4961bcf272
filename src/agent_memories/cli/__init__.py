"""Command-line interface for Agent Memories."""

from .main import cli

__all__ = ["cli"]
