"""Tests for the Google Books adapter, against an httpx mock transport."""

import httpx
import pytest

from homerecs.adapters.catalog.google_books import (
    GoogleBooksCatalog,
    edition_quality,
    prioritize_editions,
    volume_to_candidate,
)
from homerecs.ports.catalog import CatalogUnavailableError
from tests.fakes import candidate


def volume(volume_id, title, authors=("Someone",), thumbnail=None, description=None):
    info = {"title": title, "authors": list(authors), "categories": ["Fiction"]}
    if thumbnail:
        info["imageLinks"] = {"thumbnail": thumbnail}
    if description:
        info["description"] = description
    return {"id": volume_id, "volumeInfo": info}


def make_catalog(handler, api_key="key") -> GoogleBooksCatalog:
    return GoogleBooksCatalog(
        api_key=api_key, rate_limit_backoff=0, transport=httpx.MockTransport(handler)
    )


# ── Mapping ────────────────────────────────────────


def test_volume_to_candidate_upgrades_thumbnail_to_https():
    book = volume_to_candidate(volume("v1", "Título", thumbnail="http://books.google.com/x.jpg"))
    assert book.image == "https://books.google.com/x.jpg"
    assert book.categories == ("Fiction",)


def test_volume_without_title_is_skipped():
    assert volume_to_candidate({"id": "v1", "volumeInfo": {}}) is None


def test_edition_quality_penalizes_study_guides():
    plain = candidate("a", "Dune", authors=("Frank Herbert",))
    guide = candidate("b", "Dune: resumen y guía", authors=("Frank Herbert",))
    assert edition_quality(plain) > edition_quality(guide)


def test_prioritize_editions_keeps_best_per_title():
    bare = candidate("a", "Dune", authors=())
    full = candidate("b", "DUNE", authors=("Frank Herbert",))
    other = candidate("c", "Hyperion")
    assert [b.external_id for b in prioritize_editions([bare, other, full])] == ["b", "c"]


# ── Search ─────────────────────────────────────────


@pytest.mark.asyncio
async def test_search_without_key_makes_no_request():
    def handler(request):
        raise AssertionError("unexpected request")

    catalog = make_catalog(handler, api_key=None)
    assert not catalog.available
    assert await catalog.search('inauthor:"Borges"', 10) == []
    await catalog.aclose()


@pytest.mark.asyncio
async def test_search_sends_query_params_and_maps_items():
    seen = []

    def handler(request):
        seen.append(request.url.params)
        return httpx.Response(200, json={"items": [volume("v1", "Ficciones"), volume("v2", "El Aleph")]})

    catalog = make_catalog(handler)
    books = await catalog.search('inauthor:"Borges"', 100)
    await catalog.aclose()

    assert [b.external_id for b in books] == ["v1", "v2"]
    params = seen[0]
    assert params["q"] == 'inauthor:"Borges"'
    assert params["maxResults"] == "40"
    assert params["printType"] == "books"
    assert params["key"] == "key"


@pytest.mark.asyncio
async def test_search_without_items_is_empty():
    catalog = make_catalog(lambda request: httpx.Response(200, json={"totalItems": 0}))
    assert await catalog.search("intitle:nada", 10) == []
    await catalog.aclose()


@pytest.mark.asyncio
async def test_rate_limit_is_retried_once():
    calls = []

    def handler(request):
        calls.append(1)
        if len(calls) == 1:
            return httpx.Response(429)
        return httpx.Response(200, json={"items": [volume("v1", "Ficciones")]})

    catalog = make_catalog(handler)
    books = await catalog.search("intitle:ficciones", 10)
    await catalog.aclose()

    assert len(calls) == 2
    assert [b.external_id for b in books] == ["v1"]


@pytest.mark.asyncio
async def test_persistent_rate_limit_raises():
    catalog = make_catalog(lambda request: httpx.Response(429))
    with pytest.raises(CatalogUnavailableError):
        await catalog.search("intitle:ficciones", 10)
    await catalog.aclose()


@pytest.mark.asyncio
async def test_server_error_raises_catalog_unavailable():
    catalog = make_catalog(lambda request: httpx.Response(503))
    with pytest.raises(CatalogUnavailableError):
        await catalog.search('subject:"Fantasy"', 10)
    await catalog.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [[], "items", 42])
async def test_non_object_payload_raises_catalog_unavailable(payload):
    catalog = make_catalog(lambda request: httpx.Response(200, json=payload))
    with pytest.raises(CatalogUnavailableError):
        await catalog.search("intitle:ficciones", 10)
    await catalog.aclose()


@pytest.mark.asyncio
async def test_items_that_are_not_a_list_raise_catalog_unavailable():
    catalog = make_catalog(lambda request: httpx.Response(200, json={"items": {"id": "v1"}}))
    with pytest.raises(CatalogUnavailableError):
        await catalog.search("intitle:ficciones", 10)
    await catalog.aclose()


@pytest.mark.asyncio
async def test_malformed_items_are_skipped():
    good = volume("v3", "Rayuela", authors=("Julio Cortázar",))
    junk = [
        "v0",
        None,
        {"id": "v1", "volumeInfo": "Ficciones"},
        {"id": "v2", "volumeInfo": {"title": "Aleph", "imageLinks": "x", "authors": "Borges"}},
        good,
    ]
    catalog = make_catalog(lambda request: httpx.Response(200, json={"items": junk}))
    books = await catalog.search("intitle:rayuela", 10)
    await catalog.aclose()

    assert [b.external_id for b in books] == ["v2", "v3"]
    assert books[0].image is None
    assert books[0].authors == ()
    assert books[1].authors == ("Julio Cortázar",)
