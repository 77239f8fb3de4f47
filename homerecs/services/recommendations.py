"""Home recommendation orchestrator.

Tiers, in order:

  1. cache hit
  2. no signals                       -> default catalog      (cached)
  3. empty shortlist                  -> default catalog      (cached)
  4. LLM picks, hydrated and checked  -> ``llm+shortlist``    (cached)
  5. local ranking over the shortlist -> ``fallback-local``   (cached)
  6. leak found after local ranking   -> default catalog      (cached)
  7. unexpected exception             -> default catalog      (not cached)

Every result is built by ``assemble_result``, so each tier returns exactly
twelve plus twelve disjoint books.
"""

import logging
from typing import Any

from homerecs.domain.books import (
    LIST_SIZE,
    RecommendationResult,
    UserSignals,
    assemble_result,
)
from homerecs.ports.recommender import RecommenderPort
from homerecs.ports.signals import SignalSourcePort
from homerecs.services.cache import RecommendationCache
from homerecs.services.defaults import STRATEGY_DEFAULTS, default_fill, default_result
from homerecs.services.hydrator import find_leaks, hydrate_picks
from homerecs.services.ranking import fallback_lists
from homerecs.services.retriever import CandidateRetriever, Shortlist
from homerecs.services.selector import LLMSelector

logger = logging.getLogger(__name__)

STRATEGY_LLM = "llm+shortlist"
STRATEGY_LOCAL = "fallback-local"
STRATEGY_VALIDATION = "fallback-defaults-validation"
STRATEGY_CRITICAL = "fallback-defaults-critical"


class HomeRecommender(RecommenderPort):
    def __init__(
        self,
        signal_source: SignalSourcePort,
        retriever: CandidateRetriever,
        selector: LLMSelector,
        cache: RecommendationCache | None = None,
    ) -> None:
        self._signals = signal_source
        self._retriever = retriever
        self._selector = selector
        self.cache = cache if cache is not None else RecommendationCache()

    async def get_home_recommendations(self, user_id: int) -> RecommendationResult:
        cached = self.cache.get(user_id)
        if cached is not None:
            logger.info(
                "Cache hit for user %s (%s)", user_id, cached.metadata.strategy
            )
            return cached
        logger.info("Cache miss for user %s", user_id)
        generation = self.cache.generation(user_id)
        return await self.cache.coalesce(
            user_id, lambda: self._compute(user_id, generation)
        )

    def invalidate(self, user_id: int) -> bool:
        return self.cache.invalidate(user_id)

    def clear(self) -> int:
        return self.cache.clear()

    def cache_status(self, user_id: int) -> dict[str, Any]:
        return self.cache.status(user_id)

    # ── Pipeline ────────────────────────────────────

    async def _compute(self, user_id: int, generation: int) -> RecommendationResult:
        signals: UserSignals | None = None
        try:
            signals = await self._signals.get_signals(user_id)
            result = await self._run_pipeline(user_id, signals)
        except Exception:
            logger.exception(
                "Recommendation pipeline failed for user %s; serving defaults", user_id
            )
            return default_result(user_id, STRATEGY_CRITICAL, signals)

        self.cache.put(user_id, result, generation=generation)
        logger.info(
            "Recommendations ready for user %s: strategy=%s shortlist=%d",
            user_id,
            result.metadata.strategy,
            result.metadata.shortlist_size,
        )
        return result

    async def _run_pipeline(
        self, user_id: int, signals: UserSignals
    ) -> RecommendationResult:
        if signals.is_empty:
            logger.info("User %s has no favorites or history; using defaults", user_id)
            return default_result(user_id, STRATEGY_DEFAULTS)

        shortlist = await self._retriever.build_shortlist(signals)
        if not shortlist:
            logger.info("Empty shortlist for user %s; using defaults", user_id)
            return default_result(user_id, STRATEGY_DEFAULTS, signals)

        result = await self._try_llm(user_id, signals, shortlist)
        if result is not None:
            return result
        return self._fallback(user_id, signals, shortlist)

    async def _try_llm(
        self, user_id: int, signals: UserSignals, shortlist: Shortlist
    ) -> RecommendationResult | None:
        picks = await self._selector.select(shortlist.books, signals)
        if picks is None:
            return None

        likely, discover = hydrate_picks(picks, shortlist)
        if len(likely) < LIST_SIZE or len(discover) < LIST_SIZE:
            logger.warning(
                "LLM picks incomplete for user %s: %d + %d valid",
                user_id,
                len(likely),
                len(discover),
            )
            return None

        leaks = find_leaks(likely + discover, signals)
        if leaks:
            logger.warning("LLM recommended known books to user %s: %s", user_id, leaks)
            return None

        return assemble_result(
            user_id=user_id,
            strategy=STRATEGY_LLM,
            shortlist_size=len(shortlist),
            likely=likely,
            discover=discover,
        )

    def _fallback(
        self, user_id: int, signals: UserSignals, shortlist: Shortlist
    ) -> RecommendationResult:
        logger.info("Falling back to local ranking for user %s", user_id)
        likely, discover = fallback_lists(shortlist.books, signals)
        result = assemble_result(
            user_id=user_id,
            strategy=STRATEGY_LOCAL,
            shortlist_size=len(shortlist),
            likely=likely,
            discover=discover,
            fill=default_fill(signals),
            excluded_ids=signals.known_ids,
        )

        leaks = find_leaks(result.all_books, signals)
        if leaks:
            logger.warning("Local ranking leaked known books for user %s: %s", user_id, leaks)
            return default_result(
                user_id, STRATEGY_VALIDATION, signals, shortlist_size=len(shortlist)
            )
        return result
