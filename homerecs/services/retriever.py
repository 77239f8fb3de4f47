"""Candidate retrieval: build the shortlist from catalog searches.

Queries are derived from the user's positive signals (favorites first, then
liked history): authors, categories and title keywords. Results are merged
into a deduplicated, capacity-bounded shortlist in retrieval order. When the
signal-driven queries leave the pool thin, generic genre queries top it up.

Retrieval is best effort: a failing query contributes nothing and the loop
moves on.
"""

import asyncio
import logging
import re
from collections.abc import Iterator

from homerecs.domain.books import CandidateBook, UserSignals, normalize_title
from homerecs.ports.catalog import BookCatalogPort, CatalogUnavailableError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

SHORTLIST_CAPACITY = 120
# Below this many candidates after signal queries, generic genres are used.
GENERIC_THRESHOLD = 60

AUTHORS_PER_SIGNAL = 2
AUTHOR_RESULTS = 20
CATEGORIES_PER_SIGNAL = 2
CATEGORY_RESULTS = 15
KEYWORDS_PER_SIGNAL = 3
KEYWORD_RESULTS = 10
MIN_KEYWORD_LENGTH = 4  # tokens longer than 3 characters

GENERIC_GENRES = ("Fiction", "Science Fiction", "Fantasy", "Mystery", "Romance")
GENERIC_RESULTS = 20

# Searches issued concurrently; results are still merged in query order.
SEARCH_BATCH_SIZE = 5


# ---------------------------------------------------------------------------
# Shortlist
# ---------------------------------------------------------------------------

class Shortlist:
    """Ordered, deduplicated candidate pool with a fixed capacity."""

    def __init__(
        self,
        capacity: int = SHORTLIST_CAPACITY,
        excluded_ids: frozenset[str] = frozenset(),
        excluded_titles: frozenset[str] = frozenset(),
    ) -> None:
        self.capacity = capacity
        self._excluded_ids = excluded_ids
        self._excluded_titles = excluded_titles
        self._books: dict[str, CandidateBook] = {}

    def __len__(self) -> int:
        return len(self._books)

    def __iter__(self) -> Iterator[CandidateBook]:
        return iter(self._books.values())

    def __contains__(self, external_id: object) -> bool:
        return external_id in self._books

    @property
    def full(self) -> bool:
        return len(self._books) >= self.capacity

    @property
    def books(self) -> list[CandidateBook]:
        return list(self._books.values())

    def get(self, external_id: str) -> CandidateBook | None:
        return self._books.get(external_id)

    def add(self, book: CandidateBook) -> bool:
        """Append *book* unless full, already present, or known to the user."""
        if self.full or book.external_id in self._books:
            return False
        if book.external_id in self._excluded_ids:
            return False
        if normalize_title(book.title) in self._excluded_titles:
            return False
        self._books[book.external_id] = book
        return True


# ---------------------------------------------------------------------------
# Query construction
# ---------------------------------------------------------------------------

def title_keywords(title: str, limit: int = KEYWORDS_PER_SIGNAL) -> list[str]:
    """Distinct title tokens longer than three characters, in title order."""
    keywords: list[str] = []
    seen: set[str] = set()
    for token in re.findall(r"\w+", title or ""):
        lowered = token.lower()
        if len(token) < MIN_KEYWORD_LENGTH or lowered in seen:
            continue
        seen.add(lowered)
        keywords.append(token)
        if len(keywords) >= limit:
            break
    return keywords


def signal_queries(signals: UserSignals) -> list[tuple[str, int]]:
    """``(query, max_results)`` pairs for every positive signal, deduplicated."""
    queries: list[tuple[str, int]] = []
    for ref in signals.positive:
        for author in ref.authors[:AUTHORS_PER_SIGNAL]:
            queries.append((f'inauthor:"{author}"', AUTHOR_RESULTS))
        for category in ref.categories[:CATEGORIES_PER_SIGNAL]:
            queries.append((f'subject:"{category}"', CATEGORY_RESULTS))
        for keyword in title_keywords(ref.title):
            queries.append((f"intitle:{keyword}", KEYWORD_RESULTS))
    return list(dict.fromkeys(queries))


def generic_queries() -> list[tuple[str, int]]:
    return [(f'subject:"{genre}"', GENERIC_RESULTS) for genre in GENERIC_GENRES]


# ---------------------------------------------------------------------------
# Retriever
# ---------------------------------------------------------------------------

class CandidateRetriever:
    def __init__(
        self,
        catalog: BookCatalogPort,
        capacity: int = SHORTLIST_CAPACITY,
        batch_size: int = SEARCH_BATCH_SIZE,
    ) -> None:
        self._catalog = catalog
        self._capacity = capacity
        self._batch_size = batch_size

    async def _search(self, query: str, max_results: int) -> list[CandidateBook]:
        try:
            return await self._catalog.search(query, max_results)
        except CatalogUnavailableError as exc:
            logger.warning("Search failed, skipping query %r: %s", query, exc)
            return []

    async def _fill(self, shortlist: Shortlist, queries: list[tuple[str, int]]) -> None:
        for start in range(0, len(queries), self._batch_size):
            if shortlist.full:
                return
            batch = queries[start : start + self._batch_size]
            results = await asyncio.gather(*(self._search(q, n) for q, n in batch))
            for (query, _), books in zip(batch, results):
                added = sum(1 for book in books if shortlist.add(book))
                logger.debug("Query %r added %d/%d", query, added, len(books))

    async def build_shortlist(self, signals: UserSignals) -> Shortlist:
        shortlist = Shortlist(
            capacity=self._capacity,
            excluded_ids=signals.known_ids,
            excluded_titles=signals.known_titles,
        )
        if not self._catalog.available:
            logger.warning("Book search is not configured; shortlist is empty")
            return shortlist

        queries = signal_queries(signals)
        await self._fill(shortlist, queries)
        logger.info("Shortlist after signal queries: %d", len(shortlist))

        if len(shortlist) < GENERIC_THRESHOLD:
            issued = {q for q, _ in queries}
            await self._fill(
                shortlist, [(q, n) for q, n in generic_queries() if q not in issued]
            )
            logger.info("Shortlist after generic genres: %d", len(shortlist))

        return shortlist
