"""Command-line interface for chatreview.

Every command prints a single JSON response envelope on stdout; progress
notices go to stderr.
"""

from chatreview.cli.main import cli

__all__ = ["cli"]
