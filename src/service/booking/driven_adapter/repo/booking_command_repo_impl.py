"""
Booking Command Repository Implementation

Writes are guarded so a lost race surfaces as BookingWriteConflictError
instead of a silent overwrite:
- create relies on the (user_id, concert_id) unique constraint
- increment/delete are compare-and-swap on the observed tickets_booked
"""

from datetime import datetime, timezone
import uuid

from sqlalchemy import delete, insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.booking.domain.booking_errors import BookingWriteConflictError
from src.service.booking.domain.entity.booking_entity import MAX_TICKETS_PER_USER, Booking
from src.service.booking.driven_adapter.model.booking_model import BookingModel


def to_db_uuid(value: UUID | uuid.UUID | str) -> uuid.UUID:
    """uuid_utils.UUID -> stdlib uuid.UUID, which every SQLAlchemy dialect accepts"""
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


class BookingCommandRepoImpl(IBookingCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _row_to_entity(row) -> Booking:
        return Booking(
            id=UUID(str(row.id)),
            user_id=row.user_id,
            username=row.username,
            concert_id=row.concert_id,
            tickets_booked=row.tickets_booked,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @Logger.io
    async def create(self, *, booking: Booking) -> Booking:
        now = datetime.now(timezone.utc)
        try:
            await self.session.execute(
                insert(BookingModel).values(
                    id=to_db_uuid(booking.id),
                    user_id=booking.user_id,
                    username=booking.username,
                    concert_id=booking.concert_id,
                    tickets_booked=booking.tickets_booked,
                    created_at=booking.created_at or now,
                    updated_at=booking.updated_at or now,
                )
            )
        except IntegrityError as e:
            raise BookingWriteConflictError(
                f'Booking for user {booking.user_id} and concert {booking.concert_id} '
                'was created concurrently'
            ) from e
        return booking

    @Logger.io
    async def increment_tickets(
        self, *, booking_id: UUID, expected_tickets: int, quantity: int
    ) -> Booking:
        result = await self.session.execute(
            update(BookingModel)
            .where(
                BookingModel.id == to_db_uuid(booking_id),
                BookingModel.tickets_booked == expected_tickets,
                BookingModel.tickets_booked + quantity <= MAX_TICKETS_PER_USER,
            )
            .values(
                tickets_booked=BookingModel.tickets_booked + quantity,
                updated_at=datetime.now(timezone.utc),
            )
            .returning(
                BookingModel.id,
                BookingModel.user_id,
                BookingModel.username,
                BookingModel.concert_id,
                BookingModel.tickets_booked,
                BookingModel.created_at,
                BookingModel.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        row = result.one_or_none()
        if row is None:
            raise BookingWriteConflictError()
        return self._row_to_entity(row)

    @Logger.io
    async def delete(self, *, booking_id: UUID, expected_tickets: int) -> None:
        result = await self.session.execute(
            delete(BookingModel)
            .where(
                BookingModel.id == to_db_uuid(booking_id),
                BookingModel.tickets_booked == expected_tickets,
            )
            .returning(BookingModel.id)
            .execution_options(synchronize_session=False)
        )
        if result.scalar_one_or_none() is None:
            raise BookingWriteConflictError()
