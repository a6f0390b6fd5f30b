"""Core condensing, dispatch, and review operations for chatreview."""
