"""LLM port — abstract interface for chat-completion providers."""

from abc import ABC, abstractmethod


class LLMUnavailableError(Exception):
    """The provider could not be reached or answered with an error status."""


class LLMPort(ABC):
    """Abstraction over a chat-style completion endpoint."""

    @property
    def available(self) -> bool:
        """Whether the provider is configured well enough to be called."""
        return True

    @abstractmethod
    async def complete(
        self,
        system: str,
        user: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Return the raw completion text.

        Raises ``LLMUnavailableError`` on timeouts, connection failures and
        non-2xx responses.
        """
        ...
