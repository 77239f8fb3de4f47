"""Signal source port — reads a user's favorites and reading history."""

from abc import ABC, abstractmethod

from homerecs.domain.books import UserSignals


class SignalSourcePort(ABC):
    @abstractmethod
    async def get_signals(self, user_id: int) -> UserSignals:
        """Build the user's signal set. Read errors propagate to the caller."""
        ...
