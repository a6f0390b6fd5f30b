"""Shared rotation state for the dispatcher.

The endpoint cursor and the "not before" timestamp are shared by every
concurrent ``send`` issued through one dispatcher. Reads and
read-modify-writes happen under a single asyncio lock so that a burst of
callers hitting the same dead endpoint rotate past it once, and all of them
wait out the same cooldown.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

# Sentinel for "no cooldown in effect"
NO_COOLDOWN = 0.0


@dataclass(frozen=True)
class DispatchSnapshot:
    """Point-in-time copy of the rotation state."""

    cursor: int
    not_before: float


class DispatcherState:
    """Endpoint cursor plus cooldown deadline, guarded by an asyncio lock.

    State is intentionally never reset between calls: a cooldown or rotation
    caused by one request also applies to the next, unrelated one.

    Invariant: ``0 <= cursor < size``.
    """

    def __init__(self, size: int, *, cursor: int = 0, not_before: float = NO_COOLDOWN) -> None:
        if size <= 0:
            raise ValueError("DispatcherState requires at least one endpoint")
        self.size = size
        self._cursor = cursor % size
        self._not_before = not_before
        self._lock: Optional[asyncio.Lock] = None  # Lazy-init: created on first async use

    def _get_lock(self) -> asyncio.Lock:
        """Get or lazily create the async lock.

        Must be called from within a running event loop.
        """
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def not_before(self) -> float:
        return self._not_before

    def snapshot(self) -> DispatchSnapshot:
        return DispatchSnapshot(cursor=self._cursor, not_before=self._not_before)

    async def reserve(self, now: float) -> tuple[int, float]:
        """Return the current cursor and how long to wait before using it.

        Args:
            now: Current clock reading

        Returns:
            (cursor, wait_seconds); wait_seconds is 0.0 when no cooldown applies
        """
        async with self._get_lock():
            wait = self._not_before - now
            return self._cursor, max(0.0, wait)

    async def record_success(self) -> None:
        """Clear the cooldown. The cursor stays where it is."""
        async with self._get_lock():
            self._not_before = NO_COOLDOWN

    async def record_failure(self, index: int, now: float, cooldown: float) -> bool:
        """Rotate away from a failed endpoint and start a cooldown.

        The cursor only advances if it still points at ``index``; if another
        caller already rotated past the failed endpoint, this failure does
        not advance it a second time.

        Args:
            index: Endpoint index the failed attempt used
            now: Current clock reading
            cooldown: Seconds before the next attempt may be sent

        Returns:
            True if this call advanced the cursor
        """
        async with self._get_lock():
            rotated = self._cursor == index
            if rotated:
                self._cursor = (self._cursor + 1) % self.size
            self._not_before = now + cooldown
            return rotated

    def reset(self) -> None:
        """Reset rotation state (for testing)."""
        self._cursor = 0
        self._not_before = NO_COOLDOWN
