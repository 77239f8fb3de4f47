"""Book catalog port — abstract interface for the external book search."""

from abc import ABC, abstractmethod

from homerecs.domain.books import CandidateBook


class CatalogUnavailableError(Exception):
    """A search request failed (network error, timeout, non-2xx status)."""


class BookCatalogPort(ABC):
    """Keyed search over an external book catalog."""

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    async def search(self, query: str, max_results: int) -> list[CandidateBook]:
        """Return up to *max_results* books matching *query*.

        Queries use the ``inauthor:`` / ``subject:`` / ``intitle:`` field
        prefixes understood by the catalog.
        """
        ...
