"""Deterministic local ranking used when the LLM path fails.

Scoring is affinity-based: candidates sharing an author or category with a
favorite gain points, candidates sharing an author with a disliked book lose
points. List A takes the top of the ranking; list B re-ranks the rest with a
greedy maximal-marginal-relevance pass that penalizes repeated authors and
categories.

Matching between names is ``matches``: a case-insensitive substring test.
The weights below were tuned against that exact test.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from homerecs.domain.books import (
    LIST_SIZE,
    CandidateBook,
    RankedBook,
    UserSignals,
    make_variant,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

FAVORITE_AUTHOR_WEIGHT = 3
FAVORITE_CATEGORY_WEIGHT = 2
DISLIKED_AUTHOR_PENALTY = -2

MMR_LAMBDA = 0.7
SHARED_AUTHOR_PENALTY = -1.0
SHARED_CATEGORY_PENALTY = -0.5

POOL_SIZE = LIST_SIZE * 2


@dataclass
class ScoredBook:
    book: RankedBook
    score: float


# ---------------------------------------------------------------------------
# Similarity & scoring
# ---------------------------------------------------------------------------

def matches(a: str, b: str) -> bool:
    """Case-insensitive substring similarity.

    True when both strings are non-empty and either one contains the other,
    e.g. ``"Tolkien"`` matches ``"J.R.R. Tolkien"``.
    """
    a, b = a.strip().lower(), b.strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def shares_any(left: Iterable[str], right: Iterable[str]) -> bool:
    right = list(right)
    return any(matches(x, y) for x in left for y in right)


def score_candidate(book: CandidateBook, signals: UserSignals) -> int:
    score = 0
    for favorite in signals.favorites:
        if shares_any(book.authors, favorite.authors):
            score += FAVORITE_AUTHOR_WEIGHT
        if shares_any(book.categories, favorite.categories):
            score += FAVORITE_CATEGORY_WEIGHT
    for disliked in signals.disliked_history:
        if shares_any(book.authors, disliked.authors):
            score += DISLIKED_AUTHOR_PENALTY
    return score


def affinity_reason(score: float) -> str:
    if score > 0:
        return f"Afinidad con tus favoritos (puntaje {score:g})"
    return f"Sugerido por tus géneros de lectura (puntaje {score:g})"


def rank_candidates(
    candidates: Iterable[CandidateBook], signals: UserSignals
) -> list[ScoredBook]:
    """Score and sort descending; equal scores keep retrieval order."""
    scored = []
    for candidate in candidates:
        score = score_candidate(candidate, signals)
        scored.append(
            ScoredBook(RankedBook.from_candidate(candidate, affinity_reason(score)), score)
        )
    return sorted(scored, key=lambda s: -s.score)


def pad_with_variants(scored: list[ScoredBook], size: int = POOL_SIZE) -> list[ScoredBook]:
    """Grow *scored* to *size* by cloning entries in ranking order."""
    if not scored or len(scored) >= size:
        return list(scored)
    pool = list(scored)
    taken = {s.book.external_id for s in pool}
    i = 0
    while len(pool) < size:
        source = scored[i % len(scored)]
        variant = make_variant(
            source.book, taken, f"Alternativa a «{source.book.title}»"
        )
        taken.add(variant.external_id)
        pool.append(ScoredBook(variant, source.score))
        i += 1
    logger.info("Padded fallback pool with %d synthetic variants", size - len(scored))
    return pool


# ---------------------------------------------------------------------------
# Diversification
# ---------------------------------------------------------------------------

def diversity_penalty(book: CandidateBook, selected: Sequence[CandidateBook]) -> float:
    """Penalty-only diversity term relative to already selected books."""
    penalty = 0.0
    if any(shares_any(book.authors, s.authors) for s in selected):
        penalty += SHARED_AUTHOR_PENALTY
    if any(shares_any(book.categories, s.categories) for s in selected):
        penalty += SHARED_CATEGORY_PENALTY
    return penalty


def mmr_select(
    pool: Sequence[ScoredBook],
    k: int = LIST_SIZE,
    lam: float = MMR_LAMBDA,
) -> list[ScoredBook]:
    """Greedy MMR: seed with the best score, then maximize
    ``lam * score + (1 - lam) * diversity``; ties go to the earlier candidate.
    """
    remaining = list(pool)
    if not remaining or k <= 0:
        return []

    seed_idx = max(range(len(remaining)), key=lambda i: remaining[i].score)
    selected = [remaining.pop(seed_idx)]

    while len(selected) < k and remaining:
        chosen = [s.book for s in selected]
        best_idx, best_value = 0, float("-inf")
        for idx, candidate in enumerate(remaining):
            value = lam * candidate.score + (1 - lam) * diversity_penalty(
                candidate.book, chosen
            )
            if value > best_value:
                best_idx, best_value = idx, value
        selected.append(remaining.pop(best_idx))

    return selected


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def fallback_lists(
    candidates: Sequence[CandidateBook], signals: UserSignals
) -> tuple[list[RankedBook], list[RankedBook]]:
    """Produce list A (top scores) and list B (diversified remainder)."""
    pool = pad_with_variants(rank_candidates(candidates, signals))
    likely = pool[:LIST_SIZE]
    rest = pool[LIST_SIZE:]
    discover = mmr_select(rest)

    picked = {id(s) for s in discover}
    leftovers = [s for s in rest if id(s) not in picked]
    while len(discover) < LIST_SIZE and leftovers:
        discover.append(leftovers.pop(0))

    taken = {s.book.external_id for s in likely + discover}
    while discover and len(discover) < LIST_SIZE:
        last = discover[-1]
        variant = make_variant(last.book, taken, f"Alternativa a «{last.book.title}»")
        taken.add(variant.external_id)
        discover.append(ScoredBook(variant, last.score))

    logger.info(
        "Fallback ranking: %d candidates -> %d + %d",
        len(candidates),
        len(likely),
        len(discover),
    )
    return [s.book for s in likely], [s.book for s in discover]
