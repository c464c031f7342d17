"""Call guards applied around Harvest requests."""

from .throttle import WriteRateLimitError, WriteThrottle

__all__ = ["WriteRateLimitError", "WriteThrottle"]
