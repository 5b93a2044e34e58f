"""
每条记录的支付校验次数限制

- InMemoryAttemptLimiter: 进程内计数，窗口从“最后一次被放行的尝试”起算；
  被拒绝的尝试不增加计数、也不刷新时间
- RedisAttemptLimiter: 多实例共享计数，INCR + EXPIRE；每次尝试（含被拒绝的）都会刷新过期时间
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from application.ports.attempt_limiter import AttemptDecision, AttemptLimiter
from core.settings import payment_settings
from core.logging_config import get_logger
from infrastructure.cache.redis_cache import RedisCache


logger = get_logger(__name__)


@dataclass
class _AttemptEntry:
    count: int
    last_attempt: float


class InMemoryAttemptLimiter:
    def __init__(
        self,
        *,
        max_attempts: int = 5,
        window_seconds: float = 1800,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._entries: dict[str, _AttemptEntry] = {}
        self._mutex = threading.Lock()

    async def check(self, key: str) -> AttemptDecision:
        now = self._clock()
        with self._mutex:
            entry = self._entries.get(key)
            if entry is None or now - entry.last_attempt > self.window_seconds:
                self._entries[key] = _AttemptEntry(count=1, last_attempt=now)
                return AttemptDecision(allowed=True, attempts=1)
            if entry.count >= self.max_attempts:
                return AttemptDecision(allowed=False, attempts=entry.count)
            entry.count += 1
            entry.last_attempt = now
            return AttemptDecision(allowed=True, attempts=entry.count)

    async def reset(self, key: str) -> None:
        with self._mutex:
            self._entries.pop(key, None)

    def purge_expired(self) -> int:
        """清理已过窗口的计数，返回清理数量"""
        now = self._clock()
        with self._mutex:
            expired = [k for k, e in self._entries.items() if now - e.last_attempt > self.window_seconds]
            for key in expired:
                del self._entries[key]
        return len(expired)


class RedisAttemptLimiter:
    KEY_PREFIX = "verify_attempts"

    def __init__(self, cache: RedisCache, *, max_attempts: int = 5, window_seconds: int = 1800) -> None:
        self._cache = cache
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds

    def _key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}:{key}"

    async def check(self, key: str) -> AttemptDecision:
        count = await self._cache.incr(self._key(key), ttl=self.window_seconds)
        return AttemptDecision(allowed=count <= self.max_attempts, attempts=count)

    async def reset(self, key: str) -> None:
        await self._cache.delete(self._key(key))


def build_attempt_limiter(cache: Optional[RedisCache] = None) -> AttemptLimiter:
    cfg = payment_settings.verification
    if cfg.limiter_backend == "redis":
        if cache is None:
            raise RuntimeError("VERIFICATION__LIMITER_BACKEND=redis requires an initialized Redis cache")
        logger.info("attempt_limiter_selected", backend="redis")
        return RedisAttemptLimiter(cache, max_attempts=cfg.max_attempts, window_seconds=cfg.window_seconds)
    logger.info("attempt_limiter_selected", backend="memory")
    return InMemoryAttemptLimiter(max_attempts=cfg.max_attempts, window_seconds=cfg.window_seconds)
