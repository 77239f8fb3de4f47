"""Process-wide recommendation cache with per-user single-flight.

Entries never expire; they leave only through ``invalidate`` (logout) or
``clear`` (maintenance). Concurrent misses for one user share a single
in-flight computation. Every key carries a generation number that
invalidation bumps, so a computation started before an invalidation cannot
write its now-stale result afterwards, and later misses do not join it.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from homerecs.domain.books import LIST_SIZE, RecommendationResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CacheEntry:
    data: RecommendationResult
    timestamp: int  # epoch milliseconds

    @property
    def is_valid(self) -> bool:
        return (
            isinstance(self.data, RecommendationResult)
            and len(self.data.te_podrian_gustar) == LIST_SIZE
            and len(self.data.descubri_nuevas_lecturas) == LIST_SIZE
        )


class RecommendationCache:
    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock
        self._entries: dict[int, CacheEntry] = {}
        self._generations: dict[int, int] = {}
        self._in_flight: dict[int, asyncio.Future[Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    # ── Entries ─────────────────────────────────────

    def get(self, user_id: int) -> RecommendationResult | None:
        """Return the cached result, discarding it if it is malformed."""
        entry = self._entries.get(user_id)
        if entry is None:
            return None
        if not entry.is_valid:
            logger.warning("Discarding corrupt cache entry for user %s", user_id)
            del self._entries[user_id]
            return None
        return entry.data

    def generation(self, user_id: int) -> int:
        return self._generations.get(user_id, 0)

    def put(
        self,
        user_id: int,
        data: RecommendationResult,
        generation: int | None = None,
    ) -> bool:
        """Store *data*; refused when *generation* is older than the key's."""
        if generation is not None and generation != self.generation(user_id):
            logger.info(
                "Skipping stale cache write for user %s (generation %d, now %d)",
                user_id,
                generation,
                self.generation(user_id),
            )
            return False
        self._entries[user_id] = CacheEntry(data=data, timestamp=self._clock())
        return True

    def invalidate(self, user_id: int) -> bool:
        self._generations[user_id] = self.generation(user_id) + 1
        existed = self._entries.pop(user_id, None) is not None
        # The running computation finishes for its current waiters only.
        self._in_flight.pop(user_id, None)
        logger.info("Invalidated cache for user %s (had entry: %s)", user_id, existed)
        return existed

    def clear(self) -> int:
        for user_id in set(self._entries) | set(self._in_flight):
            self._generations[user_id] = self.generation(user_id) + 1
        count = len(self._entries)
        self._entries.clear()
        self._in_flight.clear()
        logger.info("Cleared %d cache entries", count)
        return count

    def status(self, user_id: int) -> dict[str, Any]:
        """Diagnostic view of one key; never mutates the cache."""
        in_flight = user_id in self._in_flight
        entry = self._entries.get(user_id)
        if entry is None:
            return {"has_cache": False, "in_flight": in_flight}
        return {
            "has_cache": True,
            "timestamp": entry.timestamp,
            "age": self._clock() - entry.timestamp,
            "strategy": entry.data.metadata.strategy,
            "list_lengths": {
                "te_podrian_gustar": len(entry.data.te_podrian_gustar),
                "descubri_nuevas_lecturas": len(entry.data.descubri_nuevas_lecturas),
            },
            "in_flight": in_flight,
        }

    # ── Single-flight ───────────────────────────────

    async def coalesce(self, user_id: int, factory: Callable[[], Awaitable[T]]) -> T:
        """Run *factory* once per user, sharing the result with late callers.

        A caller that is cancelled while waiting does not cancel the shared
        computation.
        """
        task = self._in_flight.get(user_id)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._in_flight[user_id] = task

            def _release(done: asyncio.Future[Any]) -> None:
                if self._in_flight.get(user_id) is done:
                    del self._in_flight[user_id]

            task.add_done_callback(_release)
        else:
            logger.info("Joining in-flight computation for user %s", user_id)
        return await asyncio.shield(task)
