"""Request/response models. JSON field names are camelCase."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from homerecs.domain.books import RankedBook, RecommendationResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Recommendations ─────────────────────────────────


class BookOut(CamelModel):
    external_id: str
    title: str
    authors: list[str]
    categories: list[str]
    description: str | None = None
    language: str | None = None
    page_count: int | None = None
    average_rating: float | None = None
    image: str | None = None
    reason: str
    synthetic: bool = False
    variant_of: str | None = None

    @classmethod
    def from_book(cls, book: RankedBook) -> "BookOut":
        return cls(
            external_id=book.external_id,
            title=book.title,
            authors=list(book.authors),
            categories=list(book.categories),
            description=book.description,
            language=book.language,
            page_count=book.page_count,
            average_rating=book.average_rating,
            image=book.image,
            reason=book.reason,
            synthetic=book.is_synthetic,
            variant_of=book.variant_of,
        )


class MetadataOut(CamelModel):
    user_id: int | str
    generated_at: str
    strategy: str
    shortlist_size: int


class HomeRecommendationsResponse(CamelModel):
    te_podrian_gustar: list[BookOut]
    descubri_nuevas_lecturas: list[BookOut]
    metadata: MetadataOut

    @classmethod
    def from_result(cls, result: RecommendationResult) -> "HomeRecommendationsResponse":
        meta = result.metadata
        return cls(
            te_podrian_gustar=[BookOut.from_book(b) for b in result.te_podrian_gustar],
            descubri_nuevas_lecturas=[
                BookOut.from_book(b) for b in result.descubri_nuevas_lecturas
            ],
            metadata=MetadataOut(
                user_id=meta.user_id,
                generated_at=meta.generated_at,
                strategy=meta.strategy,
                shortlist_size=meta.shortlist_size,
            ),
        )


# ── Cache ───────────────────────────────────────────


class InvalidateRequest(CamelModel):
    # Validated by hand so malformed ids produce a 400 with our error body.
    user_id: int | str | None = None


class InvalidateResponse(CamelModel):
    message: str
    user_id: int
    cleared: bool


class ListLengths(CamelModel):
    te_podrian_gustar: int
    descubri_nuevas_lecturas: int


class CacheStatusResponse(CamelModel):
    has_cache: bool
    timestamp: int | None = None
    age: int | None = None
    strategy: str | None = None
    list_lengths: ListLengths | None = None
    in_flight: bool = False


class ClearCacheResponse(CamelModel):
    cleared: int


# ── System ──────────────────────────────────────────


class Features(CamelModel):
    llm: bool
    book_search: bool


class HealthResponse(CamelModel):
    status: str
    service: str
    features: Features
    llm_provider: str
