"""Chat review workflow: records -> formatted blob -> condense -> analyze.

Every user-visible outcome is a ``ToolResponse``; failures come back as
error responses with a short human-readable message instead of exceptions.
Cancellation of the calling task still propagates.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from chatreview.config import ReviewConfig
from chatreview.core.condense import CharRatioEstimator, Condenser, ProgressCallback, ReductionResult
from chatreview.core.context import correlation_context
from chatreview.core.dispatch import Dispatcher
from chatreview.core.errors import (
    NoRecordsError,
    ProgressStallError,
    ScopeResolutionError,
    TimeBudgetExceededError,
    error_to_response,
)
from chatreview.core.observability import audit_log
from chatreview.core.records import RecordsProvider, format_records
from chatreview.core.responses import (
    ErrorCode,
    ErrorType,
    ToolResponse,
    error_response,
    success_response,
)

logger = logging.getLogger(__name__)


@dataclass
class ReviewOutcome:
    """Successful review result before it is wrapped in a response."""

    report: str
    record_count: int
    user_count: int
    reduction: ReductionResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatReviewWorkflow:
    """Run an analysis task over recent chat records.

    The dispatcher (and so its rotation cursor and cooldown) is shared by
    every run of one workflow instance.

    Example:
        workflow = ChatReviewWorkflow(config, JsonlRecordsProvider("chat.jsonl"))
        response = await workflow.run("Summarize the argument", channel_id="general")
    """

    def __init__(
        self,
        config: ReviewConfig,
        provider: RecordsProvider,
        dispatcher: Optional[Dispatcher] = None,
        *,
        on_progress: Optional[ProgressCallback] = None,
        now_func: Callable[[], datetime] = _utcnow,
    ):
        self.config = config
        self.provider = provider
        self.dispatcher = dispatcher or Dispatcher.from_config(config)
        self._on_progress = on_progress
        self._now = now_func

    def _build_condenser(self) -> Condenser:
        return Condenser(
            self.dispatcher,
            CharRatioEstimator(self.config.chars_per_token),
            max_concurrent=self.config.max_concurrent,
            max_stalled_iterations=self.config.max_stalled_iterations,
            max_iterations=self.config.max_iterations,
            on_progress=self._on_progress,
        )

    async def run(
        self,
        task: str,
        *,
        channel_id: Optional[str] = None,
        user: Optional[str] = None,
        guild: Optional[str] = None,
        hours: Optional[float] = None,
    ) -> ToolResponse:
        """Review the last ``hours`` of records in scope with ``task``.

        Args:
            task: Analysis task description (required)
            channel_id: Channel the review was requested from
            user: Restrict to one user (uid or name)
            guild: Review another channel/guild instead of channel_id
            hours: Look-back window (default from config)

        Returns:
            ToolResponse with ``report`` on success
        """
        if not task or not task.strip():
            return error_response(
                "Analysis task is required",
                error_code=ErrorCode.MISSING_REQUIRED,
                error_type=ErrorType.VALIDATION,
                remediation="Describe what the report should cover",
            )
        window = hours if hours is not None else self.config.default_hours
        if window <= 0:
            return error_response(
                f"hours must be positive, got {window}",
                error_code=ErrorCode.VALIDATION_ERROR,
                error_type=ErrorType.VALIDATION,
            )

        with correlation_context():
            started = time.perf_counter()
            try:
                outcome = await self._run_with_deadline(task, channel_id, user, guild, window)
            except NoRecordsError as e:
                logger.info("No records for channel=%s user=%s in last %.1fh", channel_id, user, window)
                return success_response(
                    report=None,
                    record_count=0,
                    warnings=[f"{ErrorCode.NO_RECORDS.value}: {e}"],
                )
            except (ScopeResolutionError, ProgressStallError, TimeBudgetExceededError) as e:
                logger.warning("Chat review failed: %s", e)
                response = error_to_response(e)
                assert response is not None
                return response
            except Exception as e:
                logger.exception("Chat review failed unexpectedly")
                return error_response(
                    f"Analysis failed: {e}",
                    error_code=ErrorCode.INTERNAL_ERROR,
                    error_type=ErrorType.INTERNAL,
                )

            duration_ms = round((time.perf_counter() - started) * 1000, 1)
            reduction = outcome.reduction
            audit_log(
                "review_completed",
                record_count=outcome.record_count,
                iterations=reduction.iterations,
                condense_requests=reduction.condense_requests,
                duration_ms=duration_ms,
            )
            return success_response(
                report=outcome.report,
                record_count=outcome.record_count,
                user_count=outcome.user_count,
                iterations=reduction.iterations,
                condense_requests=reduction.condense_requests,
                original_tokens=reduction.original_tokens,
                final_tokens=reduction.final_tokens,
                telemetry={"duration_ms": duration_ms},
            )

    async def _run_with_deadline(
        self,
        task: str,
        channel_id: Optional[str],
        user: Optional[str],
        guild: Optional[str],
        hours: float,
    ) -> ReviewOutcome:
        deadline = self.config.deadline_seconds
        if deadline is None:
            return await self._review(task, channel_id, user, guild, hours)
        try:
            return await asyncio.wait_for(
                self._review(task, channel_id, user, guild, hours),
                timeout=deadline,
            )
        except asyncio.TimeoutError:
            raise TimeBudgetExceededError(
                f"Review did not finish within {deadline:.0f}s",
                budget_seconds=deadline,
                operation="review",
            ) from None

    async def _review(
        self,
        task: str,
        channel_id: Optional[str],
        user: Optional[str],
        guild: Optional[str],
        hours: float,
    ) -> ReviewOutcome:
        scope = await self.provider.resolve_scope(channel_id, user=user, guild=guild)
        uids = scope.uids if scope.uids is not None else await self.provider.channel_members(scope.channel_id)
        if not uids:
            raise NoRecordsError(channel_id=scope.channel_id, hours=hours)

        since = self._now() - timedelta(hours=hours)
        records = await self.provider.fetch_records(uids, since, channel_id=scope.channel_id)
        if not records:
            raise NoRecordsError(channel_id=scope.channel_id, hours=hours)

        present = list(dict.fromkeys(r.uid for r in records))
        names = await self.provider.user_names(present)
        lines = format_records(records, names)
        logger.debug("Formatted %d records from %d users", len(records), len(present))

        condenser = self._build_condenser()
        reduction = await condenser.reduce(lines, self.config.token_per_request)
        report = await condenser.analyze(reduction.text, task)
        return ReviewOutcome(
            report=report,
            record_count=len(records),
            user_count=len(present),
            reduction=reduction,
        )
