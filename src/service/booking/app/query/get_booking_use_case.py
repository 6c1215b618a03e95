from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.booking_snapshot import BookingSnapshot
from src.service.booking.domain.booking_errors import BookingNotFoundError
from src.service.booking.domain.entity.user_entity import UserEntity


class GetBookingUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work_factory]),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(self, *, booking_id: UUID, requester: UserEntity) -> BookingSnapshot:
        """Owners see their own bookings; admins see any"""
        async with self.uow_factory() as uow:
            booking = await uow.booking_query_repo.get_by_id(booking_id=booking_id)
            if booking is None:
                raise BookingNotFoundError()
            if not requester.is_admin:
                booking.ensure_owned_by(requester.id)
            concert = await uow.concert_query_repo.get_by_id(concert_id=booking.concert_id)

        return BookingSnapshot.from_booking(
            booking=booking,
            concert=concert,
            available_tickets=concert.available_tickets if concert else None,
        )
