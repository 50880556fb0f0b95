"""Command line entry point for kvshell."""

from .app import app

__all__ = ["app"]
