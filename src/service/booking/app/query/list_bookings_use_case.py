from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.booking_snapshot import BookingSnapshot
from src.service.booking.domain.booking_errors import ConcertNotFoundError
from src.service.booking.domain.entity.booking_entity import Booking


class ListBookingsUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work_factory]),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @staticmethod
    async def _join_concerts(
        uow: AbstractUnitOfWork, bookings: List[Booking]
    ) -> List[BookingSnapshot]:
        concerts = await uow.concert_query_repo.get_many(
            concert_ids=(booking.concert_id for booking in bookings)
        )
        return [
            BookingSnapshot.from_booking(booking=booking, concert=concerts.get(booking.concert_id))
            for booking in bookings
        ]

    @Logger.io
    async def list_user_bookings(self, *, user_id: int) -> List[BookingSnapshot]:
        async with self.uow_factory() as uow:
            bookings = await uow.booking_query_repo.list_by_user(user_id=user_id)
            return await self._join_concerts(uow, bookings)

    @Logger.io
    async def list_concert_bookings(self, *, concert_id: int) -> List[BookingSnapshot]:
        async with self.uow_factory() as uow:
            concert = await uow.concert_query_repo.get_by_id(concert_id=concert_id)
            if concert is None:
                raise ConcertNotFoundError()
            bookings = await uow.booking_query_repo.list_by_concert(concert_id=concert_id)
            return [
                BookingSnapshot.from_booking(booking=booking, concert=concert)
                for booking in bookings
            ]
