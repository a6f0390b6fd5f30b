"""Data models for budget-driven condensing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

from chatreview.core.dispatch.models import DispatchPayload


class CondensePhase(str, Enum):
    """Progress phases reported to the caller."""

    CONDENSING = "condensing"
    ANALYZING = "analyzing"


# Plain or async callable; invoked before condensing and before analysis
ProgressCallback = Callable[[CondensePhase], Optional[Awaitable[None]]]


class PayloadSender(Protocol):
    """Anything that can turn a payload into generated text (e.g. Dispatcher)."""

    async def send(self, payload: DispatchPayload) -> str: ...


@dataclass
class ReductionResult:
    """Outcome of shrinking text to fit a token budget.

    Attributes:
        text: Text that fits the budget (the original if it already did)
        iterations: Number of reduction passes performed
        condense_requests: Number of condense-mode requests issued
        original_tokens: Estimated cost of the input
        final_tokens: Estimated cost of ``text``
    """

    text: str
    iterations: int = 0
    condense_requests: int = 0
    original_tokens: int = 0
    final_tokens: int = 0

    @property
    def condensed(self) -> bool:
        return self.iterations > 0

    @property
    def compression_ratio(self) -> float:
        if self.original_tokens == 0:
            return 1.0
        return self.final_tokens / self.original_tokens

