from typing import Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_concert_query_repo import IConcertQueryRepo
from src.service.booking.domain.entity.concert_entity import Concert
from src.service.booking.driven_adapter.model.concert_model import ConcertModel


class ConcertQueryRepoImpl(IConcertQueryRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_concert: ConcertModel) -> Concert:
        return Concert(
            id=db_concert.id,
            name=db_concert.name,
            venue=db_concert.venue,
            schedule=db_concert.schedule,
            ticket_price=db_concert.ticket_price,
            capacity=db_concert.capacity,
            available_tickets=db_concert.available_tickets,
            image=db_concert.image,
        )

    @Logger.io
    async def get_by_id(self, *, concert_id: int) -> Optional[Concert]:
        db_concert = await self.session.scalar(
            select(ConcertModel)
            .where(ConcertModel.id == concert_id)
            .execution_options(populate_existing=True)
        )
        return self._to_entity(db_concert) if db_concert else None

    @Logger.io
    async def get_many(self, *, concert_ids: Iterable[int]) -> Dict[int, Concert]:
        ids = set(concert_ids)
        if not ids:
            return {}
        result = await self.session.scalars(
            select(ConcertModel)
            .where(ConcertModel.id.in_(ids))
            .execution_options(populate_existing=True)
        )
        return {db_concert.id: self._to_entity(db_concert) for db_concert in result.all()}
