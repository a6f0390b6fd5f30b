"""Shared fixtures for chatreview tests."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import pytest

from chatreview.core.dispatch import DispatchPayload
from chatreview.core.records import ChatRecord

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class RecordingSender:
    """Stand-in dispatcher that records payloads and answers via ``respond``."""

    def __init__(self, respond: Optional[Callable[[DispatchPayload], str]] = None):
        self.payloads: List[DispatchPayload] = []
        self._respond = respond or (lambda payload: "ok")

    async def send(self, payload: DispatchPayload) -> str:
        self.payloads.append(payload)
        await asyncio.sleep(0)
        return self._respond(payload)

    @property
    def condense_payloads(self) -> List[DispatchPayload]:
        return [p for p in self.payloads if "summarizer" in p.system_instructions]

    @property
    def analysis_payloads(self) -> List[DispatchPayload]:
        return [p for p in self.payloads if "analyst" in p.system_instructions]


def halve(payload: DispatchPayload) -> str:
    """Condense by keeping the first half of every line."""
    return "\n".join(line[: len(line) // 2] for line in payload.content.split("\n"))


@pytest.fixture(name="halve")
def halve_fixture():
    return halve


@pytest.fixture
def make_sender():
    """Factory for RecordingSender instances."""
    return RecordingSender


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def recording_sender():
    return RecordingSender()


@pytest.fixture
def sample_records():
    """Three users talking over twenty minutes."""
    base = FIXED_NOW - timedelta(hours=1)
    return [
        ChatRecord(uid=101, user_name="alice", content="morning all", timestamp=base, channel_id="general"),
        ChatRecord(
            uid=202,
            user_name="bob",
            content="did the deploy finish?",
            timestamp=base + timedelta(minutes=5),
            channel_id="general",
        ),
        ChatRecord(
            uid=101,
            user_name="alice",
            content="yes\nall green",
            timestamp=base + timedelta(minutes=10),
            channel_id="general",
        ),
        ChatRecord(
            uid=303,
            user_name="carol",
            content="nice work",
            timestamp=base + timedelta(minutes=20),
            channel_id="random",
        ),
    ]
