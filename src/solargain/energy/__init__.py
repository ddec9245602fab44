"""Energy estimation from sun hours."""

from .estimator import estimate, summarize

__all__ = ["estimate", "summarize"]
