"""CLI package for testopia-runner."""

from testopia_runner.cli.app import app, main

__all__ = [
    "app",
    "main",
]
