"""ReviewConfig loading and validation logic.

Provides ``_ReviewConfigLoader``, a mixin whose methods are inherited by
``ReviewConfig`` (defined in ``review.py``). Keeping loading here leaves
``review.py`` focused on field definitions.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Optional, cast

if TYPE_CHECKING:
    from chatreview.config.review import ReviewConfig

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from chatreview.config.parsing import (
    _parse_bool,
    _parse_endpoint_spec,
    _parse_endpoint_table,
    _parse_optional_float,
    _parse_optional_int,
)
from chatreview.core.dispatch.models import EndpointConfig
from chatreview.core.errors.config import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "CHATREVIEW_"


class _ReviewConfigLoader:
    """Mixin providing config-loading methods for ``ReviewConfig``."""

    if TYPE_CHECKING:
        endpoints: List[EndpointConfig]
        token_per_request: int
        cooldown_seconds: float
        request_timeout: float
        chars_per_token: float
        max_concurrent: Optional[int]
        max_stalled_iterations: int
        max_iterations: Optional[int]
        deadline_seconds: Optional[float]
        default_hours: float
        log_level: str
        structured_logging: bool

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "ReviewConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. Explicit config file (argument or CHATREVIEW_CONFIG_FILE), or else
           project ./chatreview.toml, then ~/.chatreview.toml, then
           XDG ~/.config/chatreview/config.toml
        3. Default values
        """
        config = cls()

        toml_path = config_file or os.environ.get(f"{ENV_PREFIX}CONFIG_FILE")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
            xdg_config = Path(xdg_config_home) / "chatreview" / "config.toml"
            if xdg_config.exists():
                config._load_toml(xdg_config)
                logger.debug(f"Loaded XDG config from {xdg_config}")

            home_config = Path.home() / ".chatreview.toml"
            if home_config.exists():
                config._load_toml(home_config)
                logger.debug(f"Loaded user config from {home_config}")

            project_config = Path("chatreview.toml")
            if project_config.exists():
                config._load_toml(project_config)
                logger.debug(f"Loaded project config from {project_config}")

        config._load_env()
        return cast("ReviewConfig", config)

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}") from e

        if "endpoints" in data:
            self.endpoints = [_parse_endpoint_table(entry, dict(os.environ)) for entry in data["endpoints"]]

        if "condense" in data:
            cond = data["condense"]
            if "token_per_request" in cond:
                self.token_per_request = int(cond["token_per_request"])
            if "chars_per_token" in cond:
                self.chars_per_token = float(cond["chars_per_token"])
            if "max_concurrent" in cond:
                self.max_concurrent = _parse_optional_int(cond["max_concurrent"])
            if "max_stalled_iterations" in cond:
                self.max_stalled_iterations = int(cond["max_stalled_iterations"])
            if "max_iterations" in cond:
                self.max_iterations = _parse_optional_int(cond["max_iterations"])

        if "dispatch" in data:
            disp = data["dispatch"]
            if "cooldown_seconds" in disp:
                self.cooldown_seconds = float(disp["cooldown_seconds"])
            if "request_timeout" in disp:
                self.request_timeout = float(disp["request_timeout"])
            if "deadline_seconds" in disp:
                self.deadline_seconds = _parse_optional_float(disp["deadline_seconds"])

        if "review" in data:
            rev = data["review"]
            if "default_hours" in rev:
                self.default_hours = float(rev["default_hours"])

        if "logging" in data:
            log = data["logging"]
            if "level" in log:
                self.log_level = str(log["level"]).upper()
            if "structured" in log:
                self.structured_logging = _parse_bool(log["structured"])

        logger.debug(f"Loaded config from {path}")

    def _load_env(self) -> None:
        """Apply CHATREVIEW_* environment overrides."""
        env = os.environ

        if endpoints := env.get(f"{ENV_PREFIX}ENDPOINTS"):
            key = env.get(f"{ENV_PREFIX}API_KEY", "")
            self.endpoints = [
                _parse_endpoint_spec(spec, key) for spec in endpoints.split(",") if spec.strip()
            ]

        if value := env.get(f"{ENV_PREFIX}TOKEN_PER_REQUEST"):
            self.token_per_request = int(value)
        if value := env.get(f"{ENV_PREFIX}CHARS_PER_TOKEN"):
            self.chars_per_token = float(value)
        if (value := env.get(f"{ENV_PREFIX}MAX_CONCURRENT")) is not None:
            self.max_concurrent = _parse_optional_int(value)
        if value := env.get(f"{ENV_PREFIX}MAX_STALLED_ITERATIONS"):
            self.max_stalled_iterations = int(value)
        if (value := env.get(f"{ENV_PREFIX}MAX_ITERATIONS")) is not None:
            self.max_iterations = _parse_optional_int(value)
        if value := env.get(f"{ENV_PREFIX}COOLDOWN_SECONDS"):
            self.cooldown_seconds = float(value)
        if value := env.get(f"{ENV_PREFIX}REQUEST_TIMEOUT"):
            self.request_timeout = float(value)
        if (value := env.get(f"{ENV_PREFIX}DEADLINE_SECONDS")) is not None:
            self.deadline_seconds = _parse_optional_float(value)
        if value := env.get(f"{ENV_PREFIX}DEFAULT_HOURS"):
            self.default_hours = float(value)
        if value := env.get(f"{ENV_PREFIX}LOG_LEVEL"):
            self.log_level = value.upper()
        if (value := env.get(f"{ENV_PREFIX}STRUCTURED_LOGGING")) is not None:
            self.structured_logging = _parse_bool(value)

    def validate(self, *, require_endpoints: bool = True) -> None:
        """Check that the configuration is usable.

        Args:
            require_endpoints: Whether at least one endpoint must be configured

        Raises:
            ConfigError: On the first invalid setting found
        """
        if self.token_per_request <= 0:
            raise ConfigError(f"token_per_request must be positive, got {self.token_per_request}")
        if self.chars_per_token <= 0:
            raise ConfigError(f"chars_per_token must be positive, got {self.chars_per_token}")
        if self.cooldown_seconds < 0:
            raise ConfigError(f"cooldown_seconds must not be negative, got {self.cooldown_seconds}")
        if self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.max_stalled_iterations < 1:
            raise ConfigError("max_stalled_iterations must be at least 1")
        if self.default_hours <= 0:
            raise ConfigError(f"default_hours must be positive, got {self.default_hours}")
        if require_endpoints and not self.endpoints:
            raise ConfigError(
                "No generation endpoints configured; add [[endpoints]] to chatreview.toml "
                f"or set {ENV_PREFIX}ENDPOINTS"
            )

    def _describe(self) -> dict[str, Any]:
        """Non-secret summary of the configuration, for debug logs."""
        return {
            "endpoints": [f"{e.model}@{e.url}" for e in self.endpoints],
            "token_per_request": self.token_per_request,
            "cooldown_seconds": self.cooldown_seconds,
            "chars_per_token": self.chars_per_token,
            "deadline_seconds": self.deadline_seconds,
        }
