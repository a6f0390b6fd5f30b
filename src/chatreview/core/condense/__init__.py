"""Budget-aware condensing of chat text.

Key Components:
    - Condenser: recursive chunk-and-condense, then one analysis request
    - partition_lines: greedy, line-preserving chunk partition
    - CharRatioEstimator: ``ceil(len / chars_per_token)`` cost heuristic

Usage:
    from chatreview.core.condense import Condenser, CharRatioEstimator

    condenser = Condenser(dispatcher, CharRatioEstimator(1.8))
    report = await condenser.condense_to_budget(lines, budget=8000, task_descriptor="...")
"""

from chatreview.core.errors.review import ProgressStallError

from .chunking import partition_lines
from .condenser import LINE_SEPARATOR, Condenser
from .estimation import (
    DEFAULT_CHARS_PER_TOKEN,
    CharRatioEstimator,
    TokenEstimator,
    estimate_tokens,
)
from .models import CondensePhase, PayloadSender, ProgressCallback, ReductionResult

__all__ = [
    "DEFAULT_CHARS_PER_TOKEN",
    "LINE_SEPARATOR",
    "CharRatioEstimator",
    "CondensePhase",
    "Condenser",
    "PayloadSender",
    "ProgressCallback",
    "ProgressStallError",
    "ReductionResult",
    "TokenEstimator",
    "estimate_tokens",
    "partition_lines",
]
