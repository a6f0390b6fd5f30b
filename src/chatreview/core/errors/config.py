"""Configuration error classes."""


class ConfigError(ValueError):
    """Raised when loaded configuration is unusable (bad values, no endpoints)."""

    pass
