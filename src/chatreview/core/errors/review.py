"""Review workflow error classes.

Covers failures in the record-gathering and condensing stages that are
surfaced to the caller, plus the defined empty result for a scope with no
records.
"""

from __future__ import annotations

from typing import Any, Optional


class ScopeResolutionError(Exception):
    """Raised when a user/guild filter cannot be resolved to a record scope.

    The message is shown to the caller verbatim and is never retried.
    """

    pass


class NoRecordsError(Exception):
    """Raised when the resolved scope has no records in the time window.

    This is a defined empty result rather than a failure; the workflow turns
    it into a successful response with no report.

    Attributes:
        channel_id: Channel that was queried
        hours: Look-back window in hours
    """

    def __init__(
        self,
        message: str = "No chat records found",
        *,
        channel_id: Optional[str] = None,
        hours: Optional[float] = None,
    ):
        self.channel_id = channel_id
        self.hours = hours
        super().__init__(message)


class ProgressStallError(Exception):
    """Raised when the condensing loop stops shrinking its input.

    The generation service is responsible for making each pass shorter. If a
    full pass over all chunks does not lower the estimated cost, looping
    again would not terminate, so the condenser stops here instead.

    Attributes:
        iteration: Reduction iteration at which the stall was detected
        tokens: Estimated cost after that iteration
        previous_tokens: Estimated cost before that iteration
        budget: Token budget the loop was trying to reach
        reason: "no_progress" or "max_iterations"
    """

    def __init__(
        self,
        *,
        iteration: int,
        tokens: int,
        previous_tokens: int,
        budget: int,
        reason: str = "no_progress",
    ):
        self.iteration = iteration
        self.tokens = tokens
        self.previous_tokens = previous_tokens
        self.budget = budget
        self.reason = reason
        if reason == "max_iterations":
            message = (
                f"Condensing stopped after {iteration} iterations at ~{tokens} tokens "
                f"(budget {budget})"
            )
        else:
            message = (
                f"Condensing made no progress at iteration {iteration}: "
                f"~{previous_tokens} -> ~{tokens} tokens (budget {budget})"
            )
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "error_type": "progress_stall",
            "reason": self.reason,
            "iteration": self.iteration,
            "tokens": self.tokens,
            "previous_tokens": self.previous_tokens,
            "budget": self.budget,
        }
