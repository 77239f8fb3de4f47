from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from homerecs.adapters.llm.mock import MockLLMAdapter
from homerecs.database import build_session_factory, init_models
from homerecs.domain.books import BookRef, UserSignals
from homerecs.main import create_app
from homerecs.services.recommendations import HomeRecommender
from homerecs.services.retriever import CandidateRetriever
from homerecs.services.selector import LLMSelector
from tests.fakes import FakeCatalog, FakeSignalSource

BASE = "http://test"

READER_ID = 7
NEWCOMER_ID = 8


@pytest.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """A fresh SQLite database per test."""
    engine, factory = build_session_factory(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_models(engine)
    yield factory
    await engine.dispose()


@pytest.fixture
def reader_signals() -> UserSignals:
    return UserSignals(
        favorites=(
            BookRef("fav-1", "La mano izquierda de la oscuridad", ("Ursula K. Le Guin",), ("Science Fiction",)),
            BookRef("fav-2", "Las ciudades invisibles", ("Italo Calvino",), ("Fiction",)),
        ),
        liked_history=(BookRef("read-1", "Beloved", ("Toni Morrison",), ("Fiction",)),),
        disliked_history=(BookRef("read-2", "Solaris", ("Stanisław Lem",), ("Science Fiction",)),),
        full_history_ids=frozenset({"read-1", "read-2", "read-3"}),
    )


@pytest.fixture
def signal_source(reader_signals: UserSignals) -> FakeSignalSource:
    return FakeSignalSource({READER_ID: reader_signals})


@pytest.fixture
def recommender(signal_source: FakeSignalSource) -> HomeRecommender:
    return HomeRecommender(
        signal_source=signal_source,
        retriever=CandidateRetriever(FakeCatalog()),
        selector=LLMSelector(MockLLMAdapter()),
    )


@pytest.fixture
async def client(recommender: HomeRecommender) -> AsyncGenerator[AsyncClient, None]:
    app = create_app()
    app.state.recommender = recommender
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=BASE) as c:
        yield c
    await app.state.catalog.aclose()
