"""Greedy line-preserving partition of text under a token budget."""

from __future__ import annotations

from typing import Optional, Sequence

from .estimation import CharRatioEstimator, TokenEstimator


def partition_lines(
    lines: Sequence[str],
    budget: int,
    estimator: Optional[TokenEstimator] = None,
) -> list[list[str]]:
    """Split ordered lines into contiguous chunks whose summed cost fits ``budget``.

    A single left-to-right scan. A chunk is closed when adding the next line
    would push its running cost over the budget, unless the chunk is still
    empty: a line is never split, so a line that alone exceeds the budget
    becomes its own chunk.

    Args:
        lines: Ordered lines of text
        budget: Maximum summed line cost per chunk (must be positive)
        estimator: Cost estimator (defaults to the 1.8 chars/token heuristic)

    Returns:
        Ordered list of chunks, each a list of lines

    Raises:
        ValueError: If budget is not positive
    """
    if budget <= 0:
        raise ValueError(f"budget must be positive, got {budget}")
    estimator = estimator or CharRatioEstimator()

    chunks: list[list[str]] = []
    current: list[str] = []
    running = 0

    for line in lines:
        cost = estimator.estimate(line)
        if current and running + cost > budget:
            chunks.append(current)
            current = []
            running = 0
        current.append(line)
        running += cost

    if current:
        chunks.append(current)
    return chunks
