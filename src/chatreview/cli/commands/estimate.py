"""Estimate command: show the token cost and chunking of a text file."""

from typing import Optional

import click

from chatreview.cli.output import emit_error, emit_success
from chatreview.cli.registry import get_context
from chatreview.core.condense import CharRatioEstimator, partition_lines


@click.command("estimate")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--budget", type=int, help="Token budget per request (default: token_per_request).")
@click.pass_context
def estimate_cmd(ctx: click.Context, file: str, budget: Optional[int]) -> None:
    """Estimate tokens for FILE and how it would be chunked."""
    config = get_context(ctx).config
    budget = budget if budget is not None else config.token_per_request
    if budget <= 0:
        emit_error(
            f"Budget must be positive, got {budget}",
            code="VALIDATION_ERROR",
            error_type="validation",
        )

    with open(file, encoding="utf-8") as f:
        text = f.read()
    lines = text.splitlines()
    estimator = CharRatioEstimator(config.chars_per_token)
    tokens = estimator.estimate("\n".join(lines))
    chunks = partition_lines(lines, budget, estimator) if lines else []

    emit_success(
        {
            "file": file,
            "lines": len(lines),
            "characters": len(text),
            "tokens": tokens,
            "budget": budget,
            "fits": tokens <= budget,
            "chunks": [
                {"lines": len(chunk), "tokens": sum(estimator.estimate(line) for line in chunk)}
                for chunk in chunks
            ],
        }
    )
