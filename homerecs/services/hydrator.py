"""Map LLM picks back to shortlist records and check for leaked known books."""

import logging
from collections.abc import Iterable

from homerecs.domain.books import RankedBook, UserSignals
from homerecs.services.retriever import Shortlist
from homerecs.services.selector import LLMPicks, Pick

logger = logging.getLogger(__name__)

DEFAULT_LIKELY_REASON = "Relacionado con tus libros favoritos"
DEFAULT_DISCOVER_REASON = "Una nueva lectura para descubrir"


def _hydrate_list(
    picks: Iterable[Pick],
    shortlist: Shortlist,
    seen: set[str],
    default_reason: str,
) -> list[RankedBook]:
    books: list[RankedBook] = []
    for pick in picks:
        candidate = shortlist.get(pick.external_id)
        if candidate is None:
            logger.debug("Dropping id outside the shortlist: %s", pick.external_id)
            continue
        if pick.external_id in seen:
            continue
        seen.add(pick.external_id)
        books.append(
            RankedBook.from_candidate(candidate, pick.reason.strip() or default_reason)
        )
    return books


def hydrate_picks(
    picks: LLMPicks, shortlist: Shortlist
) -> tuple[list[RankedBook], list[RankedBook]]:
    """Build both lists from shortlist records only.

    Ids the model invented are dropped silently; a book picked twice keeps
    its first placement.
    """
    seen: set[str] = set()
    likely = _hydrate_list(picks.te_podrian_gustar, shortlist, seen, DEFAULT_LIKELY_REASON)
    discover = _hydrate_list(
        picks.descubri_nuevas_lecturas, shortlist, seen, DEFAULT_DISCOVER_REASON
    )
    dropped = (
        len(picks.te_podrian_gustar) + len(picks.descubri_nuevas_lecturas)
        - len(likely) - len(discover)
    )
    if dropped:
        logger.info("Hydration dropped %d unknown or repeated picks", dropped)
    return likely, discover


def find_leaks(books: Iterable[RankedBook], signals: UserSignals) -> list[str]:
    """Ids among *books* that belong to the user's favorites or history."""
    known = signals.known_ids
    return [b.external_id for b in books if b.external_id in known]
