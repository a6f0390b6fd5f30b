"""Standard response envelope for review operations."""

from chatreview.core.responses.builders import error_response, success_response
from chatreview.core.responses.types import ErrorCode, ErrorType, ToolResponse

__all__ = [
    "ErrorCode",
    "ErrorType",
    "ToolResponse",
    "error_response",
    "success_response",
]
