"""
Verification attempt limiter port.

A soft brake against signature brute-forcing on a single record; it is not a
security boundary (the HMAC check is).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class AttemptDecision:
    allowed: bool
    attempts: int


@runtime_checkable
class AttemptLimiter(Protocol):
    async def check(self, key: str) -> AttemptDecision:
        """Record an attempt for ``key`` and decide whether it may proceed."""
        ...

    async def reset(self, key: str) -> None: ...
