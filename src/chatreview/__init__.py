"""chatreview: budget-aware chat history condensing and analysis."""

from chatreview.config import ReviewConfig, get_config, set_config
from chatreview.core.condense import Condenser, ReductionResult
from chatreview.core.dispatch import DispatchPayload, Dispatcher, EndpointConfig
from chatreview.core.review import ChatReviewWorkflow

__all__ = [
    "ChatReviewWorkflow",
    "Condenser",
    "DispatchPayload",
    "Dispatcher",
    "EndpointConfig",
    "ReductionResult",
    "ReviewConfig",
    "get_config",
    "set_config",
]
