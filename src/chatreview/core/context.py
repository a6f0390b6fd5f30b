"""Request-scoped context for correlation IDs.

A correlation ID ties together the log lines and audit events emitted by a
single review run, including every concurrent chunk request it fans out.
"""

import contextvars
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

_correlation_id: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """Generate a short, prefixed correlation ID."""
    return f"rev_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> str:
    """Get the correlation ID for the current context ('' when unset)."""
    return _correlation_id.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of the block.

    Tasks created inside the block (e.g. via ``asyncio.gather``) copy the
    current context, so fanned-out requests share the same ID.

    Args:
        correlation_id: Explicit ID to bind; a new one is generated if None

    Yields:
        The bound correlation ID
    """
    cid = correlation_id or generate_correlation_id()
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)
