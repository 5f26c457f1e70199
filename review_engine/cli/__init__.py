"""Command line interface (python -m review_engine.cli)."""

from .app import EXIT_BLOCKING, EXIT_FATAL, EXIT_OK, main

__all__ = [
    "EXIT_OK",
    "EXIT_FATAL",
    "EXIT_BLOCKING",
    "main",
]
