"""Parsing and normalization helpers for configuration values.

Provides boolean parsing, optional-number parsing, and endpoint spec
parsing used by the loader.
"""

import logging
from typing import Any, Optional

from chatreview.core.dispatch.models import EndpointConfig
from chatreview.core.errors.config import ConfigError

logger = logging.getLogger(__name__)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _parse_optional_float(value: Any) -> Optional[float]:
    """Parse a float where "", "none", "off" or 0 disable the setting."""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if value > 0 else None
    normalized = str(value).strip().lower()
    if normalized in {"", "none", "off", "null"}:
        return None
    parsed = float(normalized)
    return parsed if parsed > 0 else None


def _parse_optional_int(value: Any) -> Optional[int]:
    parsed = _parse_optional_float(value)
    return int(parsed) if parsed is not None else None


def _parse_endpoint_spec(spec: str, key: str = "") -> EndpointConfig:
    """Parse a ``model@url`` endpoint specification.

    - "gpt-4o-mini@https://api.openai.com/v1" -> model "gpt-4o-mini"
    - "qwen@http://localhost:8000/v1/" -> trailing slash kept; stripped at request time

    Args:
        spec: Endpoint specification string
        key: Credential to attach

    Raises:
        ConfigError: If the spec has no model or no URL
    """
    model, sep, url = spec.strip().partition("@")
    if not sep or not model.strip() or not url.strip():
        raise ConfigError(f"Invalid endpoint spec {spec!r}; expected 'model@url'")
    return EndpointConfig(url=url.strip(), model=model.strip(), key=key)


def _parse_endpoint_table(entry: Any, env: Optional[dict] = None) -> EndpointConfig:
    """Parse one ``[[endpoints]]`` TOML table.

    ``key_env`` names an environment variable holding the credential and is
    used when ``key`` is absent.
    """
    if not isinstance(entry, dict):
        raise ConfigError(f"Endpoint entry must be a table, got {type(entry).__name__}")
    url = str(entry.get("url", "")).strip()
    model = str(entry.get("model", "")).strip()
    if not url or not model:
        raise ConfigError("Endpoint entries require both 'url' and 'model'")

    key = entry.get("key")
    if key is None and entry.get("key_env"):
        key = (env or {}).get(entry["key_env"])
        if key is None:
            logger.warning("Endpoint %s: environment variable %s is not set", url, entry["key_env"])
    return EndpointConfig(url=url, model=model, key=str(key or ""))
