"""
CLI module for kora-tutor.

Provides the command-line interface for running the API server and
talking to the tutor from a terminal.
"""

from kora_tutor.cli.main import cli

__all__ = ["cli"]
