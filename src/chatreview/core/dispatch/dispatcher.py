"""Multi-endpoint request dispatcher with rotation and cooldown.

Treats the configured endpoints as a ring. Each attempt goes to the endpoint
under the shared cursor; any failure rotates the cursor and imposes a shared
cooldown before the next attempt, from any caller. There is no attempt
limit: ``send`` returns only when some endpoint succeeds, or raises when the
calling task is cancelled. ``send_with_deadline`` bounds the total wait.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, Sequence

import httpx

from chatreview.core.errors.dispatch import EndpointError, TimeBudgetExceededError
from chatreview.core.observability import audit_log

from .models import (
    DispatchPayload,
    EndpointConfig,
    build_request_body,
    classify_failure,
    parse_completion,
)
from .state import DispatcherState

if TYPE_CHECKING:
    from chatreview.config import ReviewConfig

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_SECONDS = 30.0
DEFAULT_REQUEST_TIMEOUT = 600.0


class SleepFunc(Protocol):
    """Protocol for injectable sleep function."""

    async def __call__(self, seconds: float) -> None: ...


@dataclass
class DispatchStats:
    """Counters for requests made through one dispatcher."""

    attempts: int = 0
    failures: int = 0
    successes: int = 0


class Dispatcher:
    """Send generation requests across a ring of endpoints.

    Attributes:
        endpoints: Ordered endpoint ring (read-only)
        state: Shared cursor/cooldown state
        stats: Attempt counters

    Example:
        dispatcher = Dispatcher([EndpointConfig(url, model, key)])
        text = await dispatcher.send(DispatchPayload(instructions, content))
    """

    def __init__(
        self,
        endpoints: Sequence[EndpointConfig],
        *,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        state: Optional[DispatcherState] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep_func: Optional[SleepFunc] = None,
    ):
        """Initialize the dispatcher.

        Args:
            endpoints: Endpoint ring, in rotation order (must be non-empty)
            cooldown_seconds: Wait imposed after any failure
            request_timeout: Per-request HTTP timeout in seconds
            state: Existing state to share (a fresh one is created if None)
            clock: Monotonic clock used for cooldown deadlines
            sleep_func: Injectable sleep for time control in tests
        """
        if not endpoints:
            raise ValueError("Dispatcher requires at least one endpoint")
        self.endpoints: tuple[EndpointConfig, ...] = tuple(endpoints)
        self.cooldown_seconds = cooldown_seconds
        self.request_timeout = request_timeout
        self.state = state or DispatcherState(len(self.endpoints))
        if self.state.size != len(self.endpoints):
            raise ValueError(
                f"State size {self.state.size} does not match {len(self.endpoints)} endpoints"
            )
        self.stats = DispatchStats()
        self._clock = clock
        self._sleep = sleep_func or asyncio.sleep

    @classmethod
    def from_config(cls, config: "ReviewConfig", **kwargs: Any) -> "Dispatcher":
        """Create a dispatcher from review configuration.

        Args:
            config: Loaded review configuration
            **kwargs: Overrides (state, clock, sleep_func)
        """
        return cls(
            config.endpoints,
            cooldown_seconds=config.cooldown_seconds,
            request_timeout=config.request_timeout,
            **kwargs,
        )

    async def send(self, payload: DispatchPayload) -> str:
        """Send ``payload`` and return the generated text.

        Retries indefinitely across endpoints. Cancelling the calling task
        aborts both the cooldown wait and the in-flight request. A payload
        that cannot be serialized raises before any request is made.
        """
        messages = payload.to_messages()
        while True:
            index = await self._wait_for_turn()
            endpoint = self.endpoints[index]
            self.stats.attempts += 1
            try:
                text = await self._post(endpoint, messages)
            except Exception as e:
                await self._record_failure(index, endpoint, e)
                continue

            await self.state.record_success()
            self.stats.successes += 1
            return text

    async def send_with_deadline(self, payload: DispatchPayload, deadline_seconds: Optional[float]) -> str:
        """Like ``send`` but give up after ``deadline_seconds``.

        Raises:
            TimeBudgetExceededError: If no endpoint succeeded in time
        """
        if deadline_seconds is None:
            return await self.send(payload)
        try:
            return await asyncio.wait_for(self.send(payload), timeout=deadline_seconds)
        except asyncio.TimeoutError:
            raise TimeBudgetExceededError(
                f"No endpoint answered within {deadline_seconds:.0f}s",
                budget_seconds=deadline_seconds,
                operation="dispatch",
            ) from None

    async def _wait_for_turn(self) -> int:
        """Suspend until no cooldown applies, then return the cursor to use."""
        while True:
            index, wait = await self.state.reserve(self._clock())
            if wait <= 0:
                return index
            audit_log("cooldown_wait", wait_ms=int(wait * 1000), endpoint_index=index)
            await self._sleep(wait)

    async def _post(self, endpoint: EndpointConfig, messages: list[dict[str, str]]) -> str:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {endpoint.key}",
        }
        async with httpx.AsyncClient(timeout=self.request_timeout) as client:
            response = await client.post(
                endpoint.completions_url,
                json=build_request_body(endpoint, messages),
                headers=headers,
            )
        if response.status_code >= 400:
            raise EndpointError(
                f"HTTP {response.status_code}: {_extract_error_message(response)}",
                endpoint=endpoint.url,
                status_code=response.status_code,
            )
        return parse_completion(response.json(), endpoint=endpoint.url)

    async def _record_failure(self, index: int, endpoint: EndpointConfig, error: Exception) -> None:
        self.stats.failures += 1
        kind = classify_failure(error)
        rotated = await self.state.record_failure(index, self._clock(), self.cooldown_seconds)
        next_index = self.state.cursor
        logger.warning(
            "Request to %s (%s) failed [%s]: %s; next endpoint #%d after %.0fs cooldown",
            endpoint.url,
            endpoint.model,
            kind.value,
            str(error)[:200] or type(error).__name__,
            next_index,
            self.cooldown_seconds,
        )
        audit_log(
            "dispatch_failure",
            endpoint=endpoint.url,
            endpoint_index=index,
            failure_kind=kind.value,
            error_message=str(error)[:200],
        )
        if rotated:
            audit_log("endpoint_rotated", from_index=index, to_index=next_index)


def _extract_error_message(response: httpx.Response) -> str:
    """Best-effort error message from a failed response body."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    text = getattr(response, "text", "") or ""
    return str(text)[:200] or "no response body"
