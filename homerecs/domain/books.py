"""Domain value objects for home recommendations.

Everything here is immutable. A ``RecommendationResult`` can only hold
exactly ``LIST_SIZE`` + ``LIST_SIZE`` disjoint entries; ``assemble_result``
is the one place where lists are deduplicated, padded and truncated.
"""

import re
from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from typing import Any, Iterable

LIST_SIZE = 12


def normalize_title(title: str | None) -> str:
    """Lower-case a title and collapse punctuation/whitespace for grouping."""
    if not title:
        return ""
    cleaned = re.sub(r"[^\w\s]", " ", title.lower())
    return re.sub(r"\s+", " ", cleaned).strip()


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ── Signals ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class BookRef:
    """A book the user already knows (favorite or reading-history entry)."""

    external_id: str
    title: str
    authors: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()


@dataclass(frozen=True)
class UserSignals:
    """Personalization input derived from favorites and rated history."""

    favorites: tuple[BookRef, ...] = ()
    liked_history: tuple[BookRef, ...] = ()
    disliked_history: tuple[BookRef, ...] = ()
    full_history_ids: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.favorites and not self.full_history_ids

    @property
    def positive(self) -> tuple[BookRef, ...]:
        return self.favorites + self.liked_history

    @property
    def favorite_ids(self) -> frozenset[str]:
        return frozenset(f.external_id for f in self.favorites)

    @property
    def known_ids(self) -> frozenset[str]:
        """Ids that must never be recommended back to the user."""
        return self.full_history_ids | self.favorite_ids

    @property
    def known_titles(self) -> frozenset[str]:
        refs = self.favorites + self.liked_history + self.disliked_history
        return frozenset(t for t in (normalize_title(r.title) for r in refs) if t)


# ── Books ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CandidateBook:
    """A book returned by the external catalog search."""

    external_id: str
    title: str
    authors: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    description: str | None = None
    language: str | None = None
    page_count: int | None = None
    average_rating: float | None = None
    image: str | None = None


@dataclass(frozen=True)
class RankedBook(CandidateBook):
    """A recommended book with its justification.

    When ``variant_of`` is set the entry is a synthetic variant: padding
    derived from another entry rather than a distinct real book.
    """

    reason: str = ""
    variant_of: str | None = None

    @classmethod
    def from_candidate(cls, candidate: CandidateBook, reason: str) -> "RankedBook":
        values = {f.name: getattr(candidate, f.name) for f in fields(CandidateBook)}
        return cls(**values, reason=reason)

    @property
    def is_synthetic(self) -> bool:
        return self.variant_of is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "externalId": self.external_id,
            "title": self.title,
            "authors": list(self.authors),
            "categories": list(self.categories),
            "description": self.description,
            "language": self.language,
            "pageCount": self.page_count,
            "averageRating": self.average_rating,
            "image": self.image,
            "reason": self.reason,
            "synthetic": self.is_synthetic,
            "variantOf": self.variant_of,
        }


def make_variant(book: RankedBook, taken_ids: set[str], reason: str) -> RankedBook:
    """Clone *book* under an unused ``_alt`` identifier."""
    base = book.variant_of or book.external_id
    n = 1
    while True:
        candidate_id = f"{base}_alt" if n == 1 else f"{base}_alt{n}"
        if candidate_id not in taken_ids:
            break
        n += 1
    return replace(book, external_id=candidate_id, reason=reason, variant_of=base)


# ── Result ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class RecommendationMetadata:
    user_id: int | str
    generated_at: str
    strategy: str
    shortlist_size: int


@dataclass(frozen=True)
class RecommendationResult:
    """Two disjoint lists of exactly ``LIST_SIZE`` books plus metadata."""

    te_podrian_gustar: tuple[RankedBook, ...]
    descubri_nuevas_lecturas: tuple[RankedBook, ...]
    metadata: RecommendationMetadata

    def __post_init__(self) -> None:
        if len(self.te_podrian_gustar) != LIST_SIZE:
            raise ValueError(
                f"te_podrian_gustar must hold {LIST_SIZE} books, "
                f"got {len(self.te_podrian_gustar)}"
            )
        if len(self.descubri_nuevas_lecturas) != LIST_SIZE:
            raise ValueError(
                f"descubri_nuevas_lecturas must hold {LIST_SIZE} books, "
                f"got {len(self.descubri_nuevas_lecturas)}"
            )
        ids_a = [b.external_id for b in self.te_podrian_gustar]
        ids_b = [b.external_id for b in self.descubri_nuevas_lecturas]
        if len(set(ids_a) | set(ids_b)) != len(ids_a) + len(ids_b):
            raise ValueError("recommendation lists contain duplicate ids")

    @property
    def all_books(self) -> tuple[RankedBook, ...]:
        return self.te_podrian_gustar + self.descubri_nuevas_lecturas

    def to_dict(self) -> dict[str, Any]:
        return {
            "tePodrianGustar": [b.to_dict() for b in self.te_podrian_gustar],
            "descubriNuevasLecturas": [
                b.to_dict() for b in self.descubri_nuevas_lecturas
            ],
            "metadata": {
                "userId": self.metadata.user_id,
                "generatedAt": self.metadata.generated_at,
                "strategy": self.metadata.strategy,
                "shortlistSize": self.metadata.shortlist_size,
            },
        }


PADDING_REASON = "Alternativa sugerida para completar tu lista"


def assemble_result(
    *,
    user_id: int | str,
    strategy: str,
    shortlist_size: int,
    likely: Iterable[RankedBook],
    discover: Iterable[RankedBook],
    fill: Iterable[RankedBook] = (),
    excluded_ids: frozenset[str] = frozenset(),
    generated_at: str | None = None,
) -> RecommendationResult:
    """Build a valid result from possibly short, overlapping or leaky lists.

    Order of operations: drop excluded ids and ids already placed, take up
    to ``LIST_SIZE`` per list, top up list A then list B from *fill*, and
    finally pad with synthetic variants of entries already placed.
    """
    blocked: set[str] = set(excluded_ids)
    list_a: list[RankedBook] = []
    list_b: list[RankedBook] = []

    def take(books: Iterable[RankedBook], target: list[RankedBook]) -> None:
        for book in books:
            if len(target) >= LIST_SIZE:
                return
            if book.external_id in blocked:
                continue
            target.append(book)
            blocked.add(book.external_id)

    take(likely, list_a)
    take(discover, list_b)

    pool = list(fill)
    take(pool, list_a)
    take(pool, list_b)

    for target, other in ((list_a, list_b), (list_b, list_a)):
        sources = list(target or other)
        if not sources:
            raise ValueError("cannot assemble recommendations from empty input")
        i = 0
        while len(target) < LIST_SIZE:
            variant = make_variant(sources[i % len(sources)], blocked, PADDING_REASON)
            target.append(variant)
            blocked.add(variant.external_id)
            i += 1

    return RecommendationResult(
        te_podrian_gustar=tuple(list_a),
        descubri_nuevas_lecturas=tuple(list_b),
        metadata=RecommendationMetadata(
            user_id=user_id,
            generated_at=generated_at or utc_timestamp(),
            strategy=strategy,
            shortlist_size=shortlist_size,
        ),
    )
