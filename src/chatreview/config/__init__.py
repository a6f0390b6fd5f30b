"""Configuration package for chatreview.

Sub-modules:
    parsing  – Boolean/number/endpoint-spec parsing helpers
    loader   – ReviewConfig loading/validation mixin (_ReviewConfigLoader)
    review   – ReviewConfig dataclass, get_config/set_config globals
"""

from chatreview.config.parsing import (  # noqa: F401
    _parse_bool,
    _parse_endpoint_spec,
    _parse_optional_float,
)
from chatreview.config.review import (  # noqa: F401
    _PACKAGE_VERSION,
    ReviewConfig,
    get_config,
    set_config,
)
