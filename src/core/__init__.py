"""
Core package initializer.

This package provides process-wide utilities shared by the API and the
workers, such as the Face++ call spacing.
"""

from .rate_limiter import (
    IntervalRateLimiter,
    RedisIntervalRateLimiter,
    credential_key,
)

__all__ = [
    "IntervalRateLimiter",
    "RedisIntervalRateLimiter",
    "credential_key",
]
