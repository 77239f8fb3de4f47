"""Turn stored favorites and reading history into ``UserSignals``."""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from homerecs.domain.books import BookRef, UserSignals

logger = logging.getLogger(__name__)

MAX_FAVORITES = 3
LIKE_THRESHOLD = 3  # rating >= 3 is a like, <= 2 a dislike


@dataclass(frozen=True)
class ReadingRecord:
    """One reading-history entry as stored by the app."""

    external_id: str
    title: str | None = None
    authors: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    rating: int | None = None


def _as_str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v) for v in value if v)


def parse_favorites(raw: Any) -> list[BookRef]:
    """Parse the favorites column (JSON string or already-decoded list).

    Only the first three entries are read; those without an ``id`` or
    ``title`` are skipped.
    Malformed JSON is logged and treated as no favorites.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Unparseable favorites payload: %.80r", raw)
            return []
    if not isinstance(raw, list):
        logger.warning("Favorites payload is not a list: %s", type(raw).__name__)
        return []

    favorites: list[BookRef] = []
    for item in raw[:MAX_FAVORITES]:
        if not isinstance(item, dict) or not item.get("id") or not item.get("title"):
            continue
        favorites.append(
            BookRef(
                external_id=str(item["id"]),
                title=str(item["title"]),
                authors=_as_str_tuple(item.get("authors")),
                categories=_as_str_tuple(item.get("categories")),
            )
        )
    return favorites


def build_signals(favorites_raw: Any, readings: Iterable[ReadingRecord]) -> UserSignals:
    """Classify history by rating and collect every read id for exclusion.

    Unrated readings only contribute to ``full_history_ids``.
    """
    liked: list[BookRef] = []
    disliked: list[BookRef] = []
    history_ids: set[str] = set()

    for reading in readings:
        history_ids.add(reading.external_id)
        if reading.rating is None:
            continue
        ref = BookRef(
            external_id=reading.external_id,
            title=reading.title or "",
            authors=reading.authors,
            categories=reading.categories,
        )
        if reading.rating >= LIKE_THRESHOLD:
            liked.append(ref)
        else:
            disliked.append(ref)

    signals = UserSignals(
        favorites=tuple(parse_favorites(favorites_raw)),
        liked_history=tuple(liked),
        disliked_history=tuple(disliked),
        full_history_ids=frozenset(history_ids),
    )
    logger.info(
        "Signals: %d favorites, %d liked, %d disliked, %d read",
        len(signals.favorites),
        len(signals.liked_history),
        len(signals.disliked_history),
        len(signals.full_history_ids),
    )
    return signals
