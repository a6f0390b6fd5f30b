"""Recursive chunk-and-condense under a per-request token budget.

Map-reduce over chat text where the generation service does the reducing:
lines are partitioned into budget-sized chunks, each chunk is condensed
concurrently, the results are rejoined in order, and the pass repeats until
the whole text fits. Termination depends on the service actually shrinking
its input, so every pass must strictly lower the estimated cost.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Optional, Sequence

from chatreview.core.errors.review import ProgressStallError
from chatreview.core.observability import audit_log
from chatreview.core.prompts.review import build_condense_payload, build_payload

from .chunking import partition_lines
from .estimation import CharRatioEstimator, TokenEstimator
from .models import CondensePhase, PayloadSender, ProgressCallback, ReductionResult

logger = logging.getLogger(__name__)

LINE_SEPARATOR = "\n"


class Condenser:
    """Shrink ordered text lines to a token budget, then analyze them.

    Attributes:
        dispatcher: Sender used for both condense and analysis requests
        estimator: Token cost estimator

    Example:
        condenser = Condenser(dispatcher, CharRatioEstimator(1.8))
        report = await condenser.condense_to_budget(lines, 8000, "Who argued most?")
    """

    def __init__(
        self,
        dispatcher: PayloadSender,
        estimator: Optional[TokenEstimator] = None,
        *,
        max_concurrent: Optional[int] = None,
        max_stalled_iterations: int = 1,
        max_iterations: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        """Initialize the condenser.

        Args:
            dispatcher: Object with an async ``send(payload) -> str``
            estimator: Cost estimator (default: 1.8 chars per token)
            max_concurrent: Cap on in-flight chunk requests (None = all at once)
            max_stalled_iterations: Consecutive passes without cost reduction
                tolerated before raising ProgressStallError
            max_iterations: Optional ceiling on reduction passes
            on_progress: Callback invoked with each CondensePhase
        """
        if max_stalled_iterations < 1:
            raise ValueError("max_stalled_iterations must be at least 1")
        if max_concurrent is not None and max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.dispatcher = dispatcher
        self.estimator = estimator or CharRatioEstimator()
        self.max_concurrent = max_concurrent
        self.max_stalled_iterations = max_stalled_iterations
        self.max_iterations = max_iterations
        self._on_progress = on_progress

    async def condense_to_budget(
        self,
        lines: Sequence[str],
        budget: int,
        task_descriptor: Optional[str] = None,
    ) -> str:
        """Reduce ``lines`` to fit ``budget`` and run the final request.

        Args:
            lines: Ordered text lines
            budget: Token budget per request (must be positive)
            task_descriptor: Analysis task; None sends the final request in
                condense mode

        Returns:
            Text produced by the final request

        Raises:
            ProgressStallError: If condensing stops shrinking the text
            ValueError: If budget is not positive
        """
        reduction = await self.reduce(lines, budget)
        return await self.analyze(reduction.text, task_descriptor)

    async def analyze(self, text: str, task_descriptor: Optional[str] = None) -> str:
        """Issue the single final request over text that already fits."""
        await self._notify(CondensePhase.ANALYZING)
        return await self.dispatcher.send(build_payload(text, task_descriptor))

    async def reduce(self, lines: Sequence[str], budget: int) -> ReductionResult:
        """Condense ``lines`` until their joined cost is within ``budget``.

        Args:
            lines: Ordered text lines
            budget: Token budget (must be positive)

        Returns:
            ReductionResult with the fitting text and pass statistics
        """
        if budget <= 0:
            raise ValueError(f"budget must be positive, got {budget}")

        text = LINE_SEPARATOR.join(lines)
        tokens = self.estimator.estimate(text)
        result = ReductionResult(text=text, original_tokens=tokens, final_tokens=tokens)
        if tokens <= budget:
            return result

        await self._notify(CondensePhase.CONDENSING)
        stalled = 0

        while tokens > budget:
            if self.max_iterations is not None and result.iterations >= self.max_iterations:
                audit_log(
                    "condense_stalled",
                    reason="max_iterations",
                    iteration=result.iterations,
                    tokens=tokens,
                    budget=budget,
                )
                raise ProgressStallError(
                    iteration=result.iterations,
                    tokens=tokens,
                    previous_tokens=tokens,
                    budget=budget,
                    reason="max_iterations",
                )

            chunks = partition_lines(text.split(LINE_SEPARATOR), budget, self.estimator)
            condensed = await self._condense_chunks(chunks)
            result.iterations += 1
            result.condense_requests += len(chunks)

            previous = tokens
            text = LINE_SEPARATOR.join(condensed)
            tokens = self.estimator.estimate(text)

            logger.info(
                "Condense pass %d: %d chunks, ~%d -> ~%d tokens (budget %d)",
                result.iterations,
                len(chunks),
                previous,
                tokens,
                budget,
            )
            audit_log(
                "condense_iteration",
                iteration=result.iterations,
                chunks=len(chunks),
                tokens_before=previous,
                tokens_after=tokens,
                budget=budget,
            )

            if tokens < previous:
                stalled = 0
                continue

            stalled += 1
            if stalled >= self.max_stalled_iterations:
                logger.warning(
                    "Condensing stalled at ~%d tokens after %d passes (budget %d)",
                    tokens,
                    result.iterations,
                    budget,
                )
                audit_log(
                    "condense_stalled",
                    reason="no_progress",
                    iteration=result.iterations,
                    tokens=tokens,
                    budget=budget,
                )
                raise ProgressStallError(
                    iteration=result.iterations,
                    tokens=tokens,
                    previous_tokens=previous,
                    budget=budget,
                )

        result.text = text
        result.final_tokens = tokens
        return result

    async def _condense_chunks(self, chunks: list[list[str]]) -> list[str]:
        """Condense every chunk concurrently; results keep chunk order."""
        semaphore = asyncio.Semaphore(self.max_concurrent) if self.max_concurrent else None

        async def _condense_one(index: int, chunk: list[str]) -> str:
            payload = build_condense_payload(LINE_SEPARATOR.join(chunk))
            logger.debug("Condensing chunk %d/%d (%d lines)", index + 1, len(chunks), len(chunk))
            if semaphore is None:
                return await self.dispatcher.send(payload)
            async with semaphore:
                return await self.dispatcher.send(payload)

        tasks = [asyncio.create_task(_condense_one(i, c)) for i, c in enumerate(chunks)]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # One chunk failed or the caller was cancelled: stop the siblings too
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _notify(self, phase: CondensePhase) -> None:
        if self._on_progress is None:
            return
        outcome = self._on_progress(phase)
        if inspect.isawaitable(outcome):
            await outcome
