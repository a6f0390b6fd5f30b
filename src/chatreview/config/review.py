"""ReviewConfig dataclass and global configuration state.

This module defines the ``ReviewConfig`` class (field declarations and simple
accessor methods) and the global ``get_config`` / ``set_config`` helpers.
Loading and validation logic lives in the ``_ReviewConfigLoader`` mixin
(``loader.py``) which ``ReviewConfig`` inherits from.
"""

import logging
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_package_version
from typing import List, Optional

from chatreview.config.loader import _ReviewConfigLoader
from chatreview.core.condense.estimation import DEFAULT_CHARS_PER_TOKEN
from chatreview.core.dispatch.dispatcher import DEFAULT_COOLDOWN_SECONDS, DEFAULT_REQUEST_TIMEOUT
from chatreview.core.dispatch.models import EndpointConfig


def _get_version() -> str:
    """Get package version from metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("chatreview")
    except PackageNotFoundError:
        return "0.1.0"  # Fallback for dev without install


_PACKAGE_VERSION = _get_version()


@dataclass
class ReviewConfig(_ReviewConfigLoader):
    """Review configuration with support for env vars and TOML overrides."""

    # Generation endpoints, in rotation order
    endpoints: List[EndpointConfig] = field(default_factory=list)

    # Condensing
    token_per_request: int = 8000
    chars_per_token: float = DEFAULT_CHARS_PER_TOKEN
    max_concurrent: Optional[int] = None
    max_stalled_iterations: int = 1
    max_iterations: Optional[int] = None

    # Dispatch
    cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    deadline_seconds: Optional[float] = None  # None = wait for an endpoint forever

    # Review defaults
    default_hours: float = 6.0

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = False

    version: str = field(default_factory=lambda: _PACKAGE_VERSION)

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.structured_logging:
            # JSON-style structured logging
            formatter = logging.Formatter(
                '{"timestamp":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
            )
        else:
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)

        root_logger = logging.getLogger("chatreview")
        root_logger.setLevel(level)
        # Replace rather than stack handlers when called more than once
        for existing in list(root_logger.handlers):
            if getattr(existing, "_chatreview_handler", False):
                root_logger.removeHandler(existing)
        handler._chatreview_handler = True  # type: ignore[attr-defined]
        root_logger.addHandler(handler)


# Global configuration instance
_config: Optional[ReviewConfig] = None


def get_config() -> ReviewConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ReviewConfig.from_env()
    return _config


def set_config(config: ReviewConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
