"""Error-to-ErrorCode mapping registry.

Provides a centralized mapping from exception types to (ErrorCode, ErrorType)
tuples so every surfaced failure produces the same response shape.

Usage:
    from chatreview.core.errors.base import error_to_response

    try:
        await workflow_step()
    except Exception as e:
        result = error_to_response(e)
        if result is not None:
            return result
        raise  # Unknown error, re-raise
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Type

from chatreview.core.errors.config import ConfigError
from chatreview.core.errors.dispatch import EndpointError, TimeBudgetExceededError
from chatreview.core.errors.review import ProgressStallError, ScopeResolutionError
from chatreview.core.responses.builders import error_response
from chatreview.core.responses.types import ErrorCode, ErrorType, ToolResponse

ERROR_MAPPINGS: Dict[Type[Exception], Tuple[ErrorCode, ErrorType]] = {
    ScopeResolutionError: (ErrorCode.SCOPE_RESOLUTION_FAILED, ErrorType.VALIDATION),
    ProgressStallError: (ErrorCode.PROGRESS_STALLED, ErrorType.AI_PROVIDER),
    TimeBudgetExceededError: (ErrorCode.DEADLINE_EXCEEDED, ErrorType.UNAVAILABLE),
    EndpointError: (ErrorCode.AI_PROVIDER_ERROR, ErrorType.AI_PROVIDER),
    ConfigError: (ErrorCode.CONFIG_ERROR, ErrorType.INTERNAL),
}


def error_to_response(exc: Exception) -> Optional[ToolResponse]:
    """Convert a known exception to a standard error response, or None if unknown.

    Looks up the exception's *exact* type in ERROR_MAPPINGS. The exception
    message is used verbatim as the response message.

    Args:
        exc: The exception to convert.

    Returns:
        ToolResponse for a registered exception type, None otherwise.
    """
    mapping = ERROR_MAPPINGS.get(type(exc))
    if mapping is None:
        return None

    code, error_type = mapping
    details = exc.to_dict() if isinstance(exc, ProgressStallError) else None
    return error_response(str(exc), error_code=code, error_type=error_type, details=details)
