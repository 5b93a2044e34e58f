"""Verification attempt limiter implementations."""
from .attempt_limiter import InMemoryAttemptLimiter, RedisAttemptLimiter, build_attempt_limiter

__all__ = [
    "InMemoryAttemptLimiter",
    "RedisAttemptLimiter",
    "build_attempt_limiter",
]
