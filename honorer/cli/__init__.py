"""Command line interface for honorer."""

from .main import app, main

__all__ = ["app", "main"]
