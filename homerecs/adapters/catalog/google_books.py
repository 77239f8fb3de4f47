"""Book catalog adapter for the Google Books volumes API."""

import asyncio
import logging
from typing import Any

import httpx

from homerecs.domain.books import CandidateBook, normalize_title
from homerecs.ports.catalog import BookCatalogPort, CatalogUnavailableError

logger = logging.getLogger(__name__)

GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1/volumes"
MAX_RESULTS_PER_REQUEST = 40

# Edition-quality heuristics used to pick one version per title.
LOW_QUALITY_TITLE_MARKERS = ("resumen", "guía", "guia", "manual", "summary")


def _strings(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(v for v in value if isinstance(v, str))


def volume_to_candidate(item: Any) -> CandidateBook | None:
    """Map one ``items[]`` entry to a ``CandidateBook`` (``None`` if unusable)."""
    if not isinstance(item, dict):
        return None
    volume_id = item.get("id")
    info = item.get("volumeInfo")
    if not isinstance(info, dict):
        return None
    title = info.get("title")
    if not volume_id or not title:
        return None

    links = info.get("imageLinks")
    if not isinstance(links, dict):
        links = {}
    image = links.get("thumbnail") or links.get("smallThumbnail")
    if isinstance(image, str):
        image = image.replace("http://", "https://")
    else:
        image = None

    return CandidateBook(
        external_id=str(volume_id),
        title=str(title),
        authors=_strings(info.get("authors")),
        categories=_strings(info.get("categories")),
        description=info.get("description"),
        language=info.get("language"),
        page_count=info.get("pageCount"),
        average_rating=info.get("averageRating"),
        image=image,
    )


def edition_quality(book: CandidateBook) -> int:
    score = 0
    if book.image and "placehold.co" not in book.image:
        score += 10
    if book.authors:
        score += 5
    if book.description and len(book.description) > 50:
        score += 3
    title = book.title.lower()
    if any(marker in title for marker in LOW_QUALITY_TITLE_MARKERS):
        score -= 5
    return score


def prioritize_editions(books: list[CandidateBook]) -> list[CandidateBook]:
    """Keep the best edition of each normalized title, in first-seen order."""
    groups: dict[str, list[CandidateBook]] = {}
    for book in books:
        groups.setdefault(normalize_title(book.title), []).append(book)
    # max() keeps the first of equally scored editions
    return [max(group, key=edition_quality) for group in groups.values()]


class GoogleBooksCatalog(BookCatalogPort):
    """Search adapter; degrades to empty results when no API key is set."""

    def __init__(
        self,
        api_key: str | None,
        timeout: float = 5.0,
        rate_limit_backoff: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._backoff = rate_limit_backoff
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def available(self) -> bool:
        return bool(self._api_key)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, params: dict[str, Any]) -> httpx.Response:
        try:
            resp = await self._client.get(GOOGLE_BOOKS_URL, params=params)
            if resp.status_code == 429:
                logger.warning(
                    "Google Books rate limit for %r, retrying in %.1fs",
                    params["q"],
                    self._backoff,
                )
                await asyncio.sleep(self._backoff)
                resp = await self._client.get(GOOGLE_BOOKS_URL, params=params)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise CatalogUnavailableError(
                f"Google Books search failed for {params['q']!r}: {exc}"
            ) from exc
        return resp

    async def search(self, query: str, max_results: int) -> list[CandidateBook]:
        if not self.available:
            logger.debug("Google Books API key not configured; skipping %r", query)
            return []

        params = {
            "q": query,
            "maxResults": min(max_results, MAX_RESULTS_PER_REQUEST),
            "printType": "books",
            "orderBy": "relevance",
            "key": self._api_key,
        }
        resp = await self._get(params)
        try:
            data = resp.json()
        except ValueError as exc:
            raise CatalogUnavailableError(f"Invalid JSON for {query!r}") from exc
        if not isinstance(data, dict):
            raise CatalogUnavailableError(
                f"Unexpected Google Books payload for {query!r}: {type(data).__name__}"
            )
        items = data.get("items") or []
        if not isinstance(items, list):
            raise CatalogUnavailableError(f"Unexpected items field for {query!r}")

        books = [b for b in (volume_to_candidate(i) for i in items) if b is not None]
        prioritized = prioritize_editions(books)
        logger.debug(
            "Google Books %r: %d items, %d after edition grouping",
            query,
            len(books),
            len(prioritized),
        )
        return prioritized
