from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.driven_adapter.model.booking_model import BookingModel
from src.service.booking.driven_adapter.repo.booking_command_repo_impl import to_db_uuid


class BookingQueryRepoImpl(IBookingQueryRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_booking: BookingModel) -> Booking:
        return Booking(
            id=UUID(str(db_booking.id)),  # stdlib uuid.UUID -> uuid_utils.UUID
            user_id=db_booking.user_id,
            username=db_booking.username,
            concert_id=db_booking.concert_id,
            tickets_booked=db_booking.tickets_booked,
            created_at=db_booking.created_at,
            updated_at=db_booking.updated_at,
        )

    async def _fetch(self, statement) -> List[Booking]:
        # Rows may have been changed by core UPDATEs earlier in this session
        result = await self.session.scalars(
            statement.execution_options(populate_existing=True)
        )
        return [self._to_entity(db_booking) for db_booking in result.all()]

    @Logger.io
    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        bookings = await self._fetch(
            select(BookingModel).where(BookingModel.id == to_db_uuid(booking_id))
        )
        return bookings[0] if bookings else None

    @Logger.io
    async def get_by_user_and_concert(self, *, user_id: int, concert_id: int) -> Optional[Booking]:
        bookings = await self._fetch(
            select(BookingModel).where(
                BookingModel.user_id == user_id,
                BookingModel.concert_id == concert_id,
            )
        )
        return bookings[0] if bookings else None

    @Logger.io
    async def list_by_user(self, *, user_id: int) -> List[Booking]:
        return await self._fetch(
            select(BookingModel)
            .where(BookingModel.user_id == user_id)
            .order_by(BookingModel.created_at.desc(), BookingModel.id.desc())
        )

    @Logger.io
    async def list_by_concert(self, *, concert_id: int) -> List[Booking]:
        return await self._fetch(
            select(BookingModel)
            .where(BookingModel.concert_id == concert_id)
            .order_by(BookingModel.created_at.asc(), BookingModel.id.asc())
        )
