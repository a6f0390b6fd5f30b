"""Chat records, record providers, and prompt-ready formatting.

Records come from an ordered-records provider. The review workflow turns
them into one multi-line text blob:

    Time: [2024-05-01 09:00:00-2024-05-01 11:42:10]
    Users: [A:alice,B:bob]
    A: morning all
    B: did the deploy finish?

Users are replaced by letters so that the condensing passes stay short and
the final analysis maps letters back to names through the legend.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Protocol, Sequence, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from chatreview.core.errors.review import NoRecordsError, ScopeResolutionError

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class ChatRecord(BaseModel):
    """A single timestamped chat message."""

    uid: int
    content: str
    timestamp: datetime
    user_name: Optional[str] = None
    channel_id: Optional[str] = Field(default=None, description="Channel/guild the message was sent in")

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        """Treat naive timestamps as UTC so records compare consistently."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


@dataclass
class QueryScope:
    """Resolved set of users to pull records for.

    Attributes:
        channel_id: Channel the review was requested in (or the --guild override)
        uids: Explicit user IDs; None means "every member of channel_id"
    """

    channel_id: Optional[str]
    uids: Optional[list[int]] = field(default=None)


class RecordsProvider(Protocol):
    """Ordered-records source used by the review workflow."""

    async def resolve_scope(
        self,
        channel_id: Optional[str],
        user: Optional[str] = None,
        guild: Optional[str] = None,
    ) -> QueryScope: ...

    async def channel_members(self, channel_id: Optional[str]) -> list[int]: ...

    async def fetch_records(
        self,
        uids: Sequence[int],
        since: datetime,
        channel_id: Optional[str] = None,
    ) -> list[ChatRecord]: ...

    async def user_names(self, uids: Sequence[int]) -> dict[int, str]: ...


class JsonlRecordsProvider:
    """Records provider backed by a JSON Lines file.

    Each non-blank line is one ``ChatRecord`` object. Lines that fail to
    parse are logged and skipped.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._records: Optional[list[ChatRecord]] = None

    def _load(self) -> list[ChatRecord]:
        if self._records is None:
            records: list[ChatRecord] = []
            with open(self.path, encoding="utf-8") as f:
                for lineno, raw in enumerate(f, start=1):
                    if not raw.strip():
                        continue
                    try:
                        records.append(ChatRecord.model_validate(json.loads(raw)))
                    except (json.JSONDecodeError, ValidationError) as e:
                        logger.warning("Skipping invalid record at %s:%d: %s", self.path, lineno, e)
            self._records = records
            logger.debug("Loaded %d records from %s", len(records), self.path)
        return self._records

    async def resolve_scope(
        self,
        channel_id: Optional[str],
        user: Optional[str] = None,
        guild: Optional[str] = None,
    ) -> QueryScope:
        records = self._load()
        effective_channel = guild or channel_id

        if guild is not None and not any(r.channel_id == guild for r in records):
            raise ScopeResolutionError(f"Guild not found: {guild}")

        if user is None:
            return QueryScope(channel_id=effective_channel)

        needle = user.strip().lower()
        for record in records:
            if str(record.uid) == needle or (record.user_name or "").lower() == needle:
                return QueryScope(channel_id=effective_channel, uids=[record.uid])
        raise ScopeResolutionError(f"User not found: {user}")

    async def channel_members(self, channel_id: Optional[str]) -> list[int]:
        records = self._load()
        return _unique(r.uid for r in records if channel_id is None or r.channel_id == channel_id)

    async def fetch_records(
        self,
        uids: Sequence[int],
        since: datetime,
        channel_id: Optional[str] = None,
    ) -> list[ChatRecord]:
        """Records by ``uids`` since ``since``, oldest first.

        A ``channel_id`` restricts the result to that channel; None spans all.
        """
        wanted = set(uids)
        matched = [
            r
            for r in self._load()
            if r.uid in wanted
            and r.timestamp >= since
            and (channel_id is None or r.channel_id == channel_id)
        ]
        return sorted(matched, key=lambda r: r.timestamp)

    async def user_names(self, uids: Sequence[int]) -> dict[int, str]:
        wanted = set(uids)
        names: dict[int, str] = {}
        for record in self._load():
            if record.uid in wanted and record.user_name:
                names[record.uid] = record.user_name
        return names


def _unique(values: Iterable[int]) -> list[int]:
    """Deduplicate preserving first-seen order."""
    return list(dict.fromkeys(values))


def placeholder_for(index: int) -> str:
    """Letter placeholder for the index-th user: A..Z, then AA, AB, ..."""
    if index < 0:
        raise ValueError("index must be non-negative")
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


def format_records(records: Sequence[ChatRecord], names: Optional[dict[int, str]] = None) -> list[str]:
    """Render records as header lines plus one ``letter: content`` line each.

    Args:
        records: Records ordered by timestamp ascending
        names: uid -> display name (falls back to the record's user_name, then uid)

    Returns:
        Lines ready to be joined into the condenser's input

    Raises:
        NoRecordsError: If there are no records
    """
    if not records:
        raise NoRecordsError()
    names = names or {}

    placeholders: dict[int, str] = {}
    legend: list[str] = []
    for record in records:
        if record.uid in placeholders:
            continue
        letter = placeholder_for(len(placeholders))
        placeholders[record.uid] = letter
        display = names.get(record.uid) or record.user_name or str(record.uid)
        legend.append(f"{letter}:{display}")

    start = records[0].timestamp.astimezone().strftime(TIME_FORMAT)
    end = records[-1].timestamp.astimezone().strftime(TIME_FORMAT)
    lines = [f"Time: [{start}-{end}]", f"Users: [{','.join(legend)}]"]
    for record in records:
        # One record per line; chunking never splits a line
        content = " ".join(record.content.splitlines())
        lines.append(f"{placeholders[record.uid]}: {content}")
    return lines
