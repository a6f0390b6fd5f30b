"""Unified error hierarchy for chatreview.

Exception classes live in domain-specific modules within this package;
this __init__.py re-exports them for convenient access.

Usage:
    from chatreview.core.errors import ProgressStallError, error_to_response
"""

from chatreview.core.errors.base import ERROR_MAPPINGS, error_to_response
from chatreview.core.errors.config import ConfigError
from chatreview.core.errors.dispatch import (
    EndpointError,
    EndpointFailure,
    TimeBudgetExceededError,
)
from chatreview.core.errors.review import (
    NoRecordsError,
    ProgressStallError,
    ScopeResolutionError,
)

__all__ = [
    "ERROR_MAPPINGS",
    "error_to_response",
    "ConfigError",
    "EndpointError",
    "EndpointFailure",
    "TimeBudgetExceededError",
    "NoRecordsError",
    "ProgressStallError",
    "ScopeResolutionError",
]
