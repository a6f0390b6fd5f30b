"""CLI commands."""

from chatreview.cli.commands.estimate import estimate_cmd
from chatreview.cli.commands.review import review_cmd

__all__ = [
    "estimate_cmd",
    "review_cmd",
]
