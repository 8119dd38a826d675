"""HTTP middleware for the reel proxy."""
from studio.middleware.correlation_id import CorrelationIdMiddleware
from studio.middleware.cors import PermissiveCorsMiddleware
from studio.middleware.rate_limit import RateLimitMiddleware, SlidingWindowLimiter

__all__ = [
    "CorrelationIdMiddleware",
    "PermissiveCorsMiddleware",
    "RateLimitMiddleware",
    "SlidingWindowLimiter",
]
