"""Recommender port — abstract interface for the home recommendation engine."""

from abc import ABC, abstractmethod
from typing import Any

from homerecs.domain.books import RecommendationResult


class RecommenderPort(ABC):
    """What the HTTP layer needs from the recommendation engine."""

    @abstractmethod
    async def get_home_recommendations(self, user_id: int) -> RecommendationResult:
        """Return exactly two disjoint lists of twelve books for a user."""
        ...

    @abstractmethod
    def invalidate(self, user_id: int) -> bool:
        """Drop the user's cached result. True if one existed."""
        ...

    @abstractmethod
    def clear(self) -> int:
        """Drop every cached result and return how many there were."""
        ...

    @abstractmethod
    def cache_status(self, user_id: int) -> dict[str, Any]:
        ...
