"""Generation request dispatch across rotating endpoints.

Key Components:
    - Dispatcher: send() with endpoint rotation, shared cooldown, unbounded retry
    - DispatcherState: lock-guarded cursor and cooldown deadline
    - DispatchPayload / EndpointConfig: request contract

Usage:
    from chatreview.core.dispatch import Dispatcher, DispatchPayload, EndpointConfig

    dispatcher = Dispatcher(
        [EndpointConfig("https://api.example.com/v1", "model-a", "sk-...")],
        cooldown_seconds=30.0,
    )
    text = await dispatcher.send(DispatchPayload("Summarize.", "A: hi"))
"""

from .dispatcher import (
    DEFAULT_COOLDOWN_SECONDS,
    DEFAULT_REQUEST_TIMEOUT,
    DispatchStats,
    Dispatcher,
    SleepFunc,
)
from .models import (
    COMPLETIONS_PATH,
    ChatMessage,
    CompletionResponse,
    DispatchPayload,
    EndpointConfig,
    FailureKind,
    build_request_body,
    classify_failure,
    parse_completion,
)
from .state import NO_COOLDOWN, DispatchSnapshot, DispatcherState

__all__ = [
    "COMPLETIONS_PATH",
    "DEFAULT_COOLDOWN_SECONDS",
    "DEFAULT_REQUEST_TIMEOUT",
    "NO_COOLDOWN",
    "ChatMessage",
    "CompletionResponse",
    "DispatchPayload",
    "DispatchSnapshot",
    "DispatchStats",
    "Dispatcher",
    "DispatcherState",
    "EndpointConfig",
    "FailureKind",
    "SleepFunc",
    "build_request_body",
    "classify_failure",
    "parse_completion",
]
