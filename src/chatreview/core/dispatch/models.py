"""Request/response contract for the generation service.

The wire format is the OpenAI-compatible chat completions API: a model
identifier plus exactly two messages (system, then user), answered by either
``choices[0].message.content`` or an ``error.message``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from chatreview.core.errors.dispatch import EndpointError

COMPLETIONS_PATH = "/chat/completions"


@dataclass(frozen=True)
class EndpointConfig:
    """One generation endpoint in the rotation ring.

    Attributes:
        url: Base URL (a trailing slash is tolerated)
        model: Model identifier sent in the request body
        key: Bearer credential
    """

    url: str
    model: str
    key: str = ""

    @property
    def completions_url(self) -> str:
        return f"{self.url.rstrip('/')}{COMPLETIONS_PATH}"

    def __repr__(self) -> str:
        # Never render the credential
        return f"EndpointConfig(url={self.url!r}, model={self.model!r})"


@dataclass(frozen=True)
class DispatchPayload:
    """Instructions plus content for one generation request."""

    system_instructions: str
    content: str

    def to_messages(self) -> list[dict[str, str]]:
        return [
            ChatMessage(role="system", content=self.system_instructions).model_dump(),
            ChatMessage(role="user", content=self.content).model_dump(),
        ]


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class _ResponseMessage(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class _CompletionChoice(BaseModel):
    message: Optional[_ResponseMessage] = None


class _CompletionError(BaseModel):
    message: Optional[str] = None


class CompletionResponse(BaseModel):
    """Subset of the chat completions response that the dispatcher reads."""

    choices: list[_CompletionChoice] = Field(default_factory=list)
    error: Optional[_CompletionError] = None

    @property
    def content(self) -> Optional[str]:
        if self.choices and self.choices[0].message is not None:
            return self.choices[0].message.content
        return None


def build_request_body(endpoint: EndpointConfig, messages: list[dict[str, str]]) -> dict[str, Any]:
    """Chat completions body for one endpoint; ``messages`` come from ``DispatchPayload.to_messages``."""
    return {"model": endpoint.model, "messages": messages}


def parse_completion(data: Any, *, endpoint: Optional[str] = None) -> str:
    """Extract the generated text from a decoded response body.

    Args:
        data: Decoded JSON body
        endpoint: Endpoint URL, for error attribution

    Returns:
        Generated text with surrounding whitespace stripped

    Raises:
        EndpointError: If the body is malformed, reports an error, or is empty
    """
    try:
        response = CompletionResponse.model_validate(data)
    except ValidationError as e:
        raise EndpointError(
            f"Malformed completion response: {e.error_count()} validation error(s)",
            endpoint=endpoint,
        ) from e

    content = response.content
    if content and content.strip():
        return content.strip()

    if response.error is not None and response.error.message:
        raise EndpointError(response.error.message, endpoint=endpoint)
    raise EndpointError("Completion response contained no content", endpoint=endpoint)


class FailureKind(str, Enum):
    """Classification of endpoint failures, used for logs and audit events.

    Every kind is recovered the same way (rotate, cool down, retry); the
    label only tells operators what went wrong.
    """

    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    TIMEOUT = "timeout"
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    MALFORMED = "malformed"
    SERVICE_ERROR = "service_error"
    UNKNOWN = "unknown"


def classify_failure(error: Exception) -> FailureKind:
    """Classify an endpoint failure based on type, status code, and message."""
    status = getattr(error, "status_code", None)
    error_str = str(error).lower()
    error_type_name = type(error).__name__.lower()

    if status == 429 or "rate limit" in error_str or "too many requests" in error_str:
        return FailureKind.RATE_LIMIT
    if status in (401, 403) or "unauthorized" in error_str:
        return FailureKind.AUTHENTICATION
    if status is not None and status >= 500:
        return FailureKind.SERVER_ERROR
    if "timeout" in error_type_name or "timed out" in error_str:
        return FailureKind.TIMEOUT
    if any(term in error_type_name for term in ("connect", "network", "transport", "protocol")):
        return FailureKind.NETWORK
    if "malformed" in error_str or "no content" in error_str or "json" in error_type_name:
        return FailureKind.MALFORMED
    if isinstance(error, EndpointError):
        return FailureKind.SERVICE_ERROR
    return FailureKind.UNKNOWN
