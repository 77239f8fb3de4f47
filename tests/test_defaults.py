"""Tests for the curated default catalog."""

from homerecs.domain.books import BookRef, UserSignals
from homerecs.services.defaults import (
    DEFAULT_DISCOVER,
    DEFAULT_LIKELY,
    DEFAULT_RESERVE,
    STRATEGY_DEFAULTS,
    default_result,
)


def ids(books) -> list[str]:
    return [b.external_id for b in books]


def test_catalog_ids_are_unique():
    all_ids = ids(DEFAULT_LIKELY + DEFAULT_DISCOVER + DEFAULT_RESERVE)
    assert len(all_ids) == len(set(all_ids))
    assert len(DEFAULT_LIKELY) == len(DEFAULT_DISCOVER) == 12


def test_default_result_is_the_literal_catalog():
    result = default_result(42)
    assert result.metadata.strategy == STRATEGY_DEFAULTS
    assert result.metadata.user_id == 42
    assert result.metadata.shortlist_size == 0
    assert ids(result.te_podrian_gustar) == ids(DEFAULT_LIKELY)
    assert ids(result.descubri_nuevas_lecturas) == ids(DEFAULT_DISCOVER)


def test_known_defaults_are_replaced_from_reserve():
    signals = UserSignals(
        favorites=(BookRef("some-other-edition", "El Hobbit"),),
        full_history_ids=frozenset({"5PQEAAAAMAAJ", "14iMZAAAAYAAJ"}),
    )
    result = default_result(1, "fallback-defaults-validation", signals)
    result_ids = set(ids(result.all_books))

    assert not result_ids & signals.known_ids
    assert "8iMZAAAAYAAJ" not in result_ids
    assert ids(result.te_podrian_gustar)[-2:] == ids(DEFAULT_RESERVE[:2])
    assert ids(result.descubri_nuevas_lecturas)[-1] == DEFAULT_RESERVE[2].external_id
    assert not any(b.is_synthetic for b in result.all_books)


def test_user_who_read_everything_gets_variants():
    every_id = frozenset(ids(DEFAULT_LIKELY + DEFAULT_DISCOVER + DEFAULT_RESERVE))
    signals = UserSignals(full_history_ids=every_id)
    result = default_result(1, signals=signals)
    assert all(b.is_synthetic for b in result.all_books)
    assert not set(ids(result.all_books)) & every_id


def test_placeholder_images_are_percent_encoded():
    books = {b.title: b for b in DEFAULT_LIKELY + DEFAULT_DISCOVER + DEFAULT_RESERVE}
    for book in books.values():
        assert book.image.isascii()
        assert " " not in book.image
    assert books["Rebelión en la granja"].image.endswith("?text=Rebeli%C3%B3n%20en%20la%20granja")
    assert books["El Señor de los Anillos"].image.endswith("?text=El%20Se%C3%B1or%20de%20los%20Anillos")
