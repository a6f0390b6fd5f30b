"""Token cost estimation for condensing decisions.

Cost is a deterministic length-to-token approximation rather than a real
tokenizer: ``ceil(len(text) / chars_per_token)``. The chunker and the
condenser only depend on the ``TokenEstimator`` protocol, so a precise
tokenizer can be dropped in without touching the reduction algorithm.
"""

from __future__ import annotations

import math
from typing import Protocol

# Characters per token for mixed CJK/Latin chat logs
DEFAULT_CHARS_PER_TOKEN = 1.8


class TokenEstimator(Protocol):
    """Protocol for pluggable token cost estimators."""

    def estimate(self, text: str) -> int: ...


class CharRatioEstimator:
    """Estimate tokens as ``ceil(len(text) / chars_per_token)``.

    Example:
        >>> CharRatioEstimator().estimate("hello")
        3
    """

    def __init__(self, chars_per_token: float = DEFAULT_CHARS_PER_TOKEN):
        if chars_per_token <= 0:
            raise ValueError(f"chars_per_token must be positive, got {chars_per_token}")
        self.chars_per_token = chars_per_token

    def estimate(self, text: str) -> int:
        return math.ceil(len(text) / self.chars_per_token)

    def __repr__(self) -> str:
        return f"CharRatioEstimator(chars_per_token={self.chars_per_token})"


def estimate_tokens(text: str, chars_per_token: float = DEFAULT_CHARS_PER_TOKEN) -> int:
    """Estimate the token cost of ``text`` with the character-ratio heuristic."""
    return CharRatioEstimator(chars_per_token).estimate(text)
