"""Per-invocation CLI context shared between the group and its commands."""

from dataclasses import dataclass
from typing import Optional

import click

from chatreview.config import ReviewConfig


@dataclass
class CLIContext:
    """State resolved by the top-level group."""

    config: ReviewConfig
    config_file: Optional[str] = None


def get_context(ctx: click.Context) -> CLIContext:
    """Return the CLIContext stored on the root click context."""
    obj = ctx.find_object(CLIContext)
    if obj is None:
        raise click.UsageError("CLI context not initialized")
    return obj
