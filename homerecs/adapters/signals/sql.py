"""Signal source backed by the app's relational store."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from homerecs.domain.books import UserSignals
from homerecs.domain.models import Reading, User
from homerecs.ports.signals import SignalSourcePort
from homerecs.services.signals import ReadingRecord, build_signals

logger = logging.getLogger(__name__)


class SqlSignalSource(SignalSourcePort):
    """Read favorites and reading history through async SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_signals(self, user_id: int) -> UserSignals:
        async with self._session_factory() as session:
            favorites_raw = await session.scalar(
                select(User.favorite_books).where(User.id == user_id)
            )
            result = await session.execute(
                select(Reading)
                .where(Reading.user_id == user_id)
                .order_by(Reading.id)
            )
            readings = [
                ReadingRecord(
                    external_id=row.external_id,
                    title=row.title,
                    authors=tuple(row.authors or ()),
                    categories=tuple(row.categories or ()),
                    rating=row.rating,
                )
                for row in result.scalars().all()
            ]
        logger.debug("Loaded %d readings for user %s", len(readings), user_id)
        return build_signals(favorites_raw, readings)
