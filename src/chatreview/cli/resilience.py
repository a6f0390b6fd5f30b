"""Interrupt handling for long-running CLI commands."""

import functools
from typing import Any, Callable, TypeVar

from chatreview.cli.output import emit_error

F = TypeVar("F", bound=Callable[..., Any])

# Conventional exit status for SIGINT
INTERRUPT_EXIT_CODE = 130


def handle_keyboard_interrupt() -> Callable[[F], F]:
    """Turn Ctrl-C into a CANCELLED error envelope instead of a traceback."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt:
                emit_error(
                    "Operation cancelled by user",
                    code="CANCELLED",
                    error_type="cancelled",
                    remediation="Re-run the command to start over",
                    exit_code=INTERRUPT_EXIT_CODE,
                )

        return wrapper  # type: ignore[return-value]

    return decorator
