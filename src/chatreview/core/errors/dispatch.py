"""Dispatch error classes.

EndpointError never reaches callers of ``Dispatcher.send``: it is raised
inside a single attempt and absorbed by endpoint rotation. Only the optional
overall deadline surfaces.
"""

from __future__ import annotations

from typing import Optional


class EndpointError(Exception):
    """A single generation endpoint attempt failed.

    Covers non-2xx responses, malformed or empty bodies, and error payloads
    reported by the service.

    Attributes:
        endpoint: Base URL of the endpoint that failed
        status_code: HTTP status code, if a response was received
    """

    def __init__(
        self,
        message: str,
        *,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code


# Name used in the error taxonomy for any recovered endpoint failure
EndpointFailure = EndpointError


class TimeBudgetExceededError(Exception):
    """Overall deadline for an operation has been exhausted.

    Attributes:
        budget_seconds: The original time budget.
        operation: Name of the operation.
    """

    def __init__(
        self,
        message: str,
        budget_seconds: Optional[float] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(message)
        self.budget_seconds = budget_seconds
        self.operation = operation
