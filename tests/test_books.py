"""Tests for the result factory and the result invariants."""

import pytest

from homerecs.domain.books import (
    LIST_SIZE,
    RankedBook,
    RecommendationMetadata,
    RecommendationResult,
    assemble_result,
    make_variant,
)
from tests.fakes import candidate


def ranked(*ids: str) -> list[RankedBook]:
    return [RankedBook.from_candidate(candidate(i), f"reason {i}") for i in ids]


def assemble(**kwargs) -> RecommendationResult:
    kwargs.setdefault("user_id", 1)
    kwargs.setdefault("strategy", "test")
    kwargs.setdefault("shortlist_size", 0)
    return assemble_result(**kwargs)


def ids(books) -> list[str]:
    return [b.external_id for b in books]


def test_assemble_truncates_and_keeps_order():
    likely = ranked(*(f"a{i}" for i in range(20)))
    discover = ranked(*(f"b{i}" for i in range(20)))
    result = assemble(likely=likely, discover=discover)
    assert ids(result.te_podrian_gustar) == [f"a{i}" for i in range(12)]
    assert ids(result.descubri_nuevas_lecturas) == [f"b{i}" for i in range(12)]
    assert not any(b.is_synthetic for b in result.all_books)


def test_assemble_keeps_lists_disjoint_and_fills_from_pool():
    result = assemble(
        likely=ranked("x", "y"),
        discover=ranked("y", "z"),
        fill=ranked(*(f"f{i}" for i in range(30))),
    )
    a, b = ids(result.te_podrian_gustar), ids(result.descubri_nuevas_lecturas)
    assert a[:2] == ["x", "y"]
    assert b[0] == "z"
    assert a[2:] == [f"f{i}" for i in range(10)]
    assert b[1:] == [f"f{i}" for i in range(10, 21)]
    assert not set(a) & set(b)


def test_assemble_drops_excluded_ids():
    result = assemble(
        likely=ranked("read", "ok"),
        discover=ranked("fav", "fine"),
        fill=ranked("read", *(f"f{i}" for i in range(30))),
        excluded_ids=frozenset({"read", "fav"}),
    )
    assert not {"read", "fav"} & set(ids(result.all_books))


def test_assemble_pads_with_flagged_variants():
    result = assemble(likely=ranked("only"), discover=[])
    all_ids = ids(result.all_books)
    assert len(all_ids) == len(set(all_ids)) == 2 * LIST_SIZE
    assert result.te_podrian_gustar[0].external_id == "only"
    variants = [b for b in result.all_books if b.is_synthetic]
    assert len(variants) == 2 * LIST_SIZE - 1
    assert all(v.variant_of == "only" for v in variants)
    assert variants[0].external_id == "only_alt"
    assert variants[1].external_id == "only_alt2"


def test_assemble_refuses_empty_input():
    with pytest.raises(ValueError):
        assemble(likely=[], discover=[])


def test_make_variant_skips_taken_ids():
    book = ranked("b")[0]
    variant = make_variant(book, {"b", "b_alt"}, "padding")
    assert variant.external_id == "b_alt2"
    assert variant.to_dict()["synthetic"] is True
    assert variant.to_dict()["variantOf"] == "b"


def test_result_rejects_wrong_shapes():
    meta = RecommendationMetadata(1, "2024-01-01T00:00:00.000Z", "test", 0)
    twelve = tuple(ranked(*(f"a{i}" for i in range(12))))
    other = tuple(ranked(*(f"b{i}" for i in range(12))))

    with pytest.raises(ValueError):
        RecommendationResult(twelve[:11], other, meta)
    with pytest.raises(ValueError):
        RecommendationResult(twelve, twelve, meta)
    assert RecommendationResult(twelve, other, meta).to_dict()["metadata"]["userId"] == 1
