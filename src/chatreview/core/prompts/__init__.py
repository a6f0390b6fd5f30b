"""Prompt text for generation requests."""

from chatreview.core.prompts.review import (
    ANALYSIS_CHAR_LIMIT,
    CONDENSE_INSTRUCTIONS,
    analysis_instructions,
    build_analysis_payload,
    build_condense_payload,
    build_payload,
)

__all__ = [
    "ANALYSIS_CHAR_LIMIT",
    "CONDENSE_INSTRUCTIONS",
    "analysis_instructions",
    "build_analysis_payload",
    "build_condense_payload",
    "build_payload",
]
