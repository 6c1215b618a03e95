from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.command.conflict_retry import run_with_conflict_retry
from src.service.booking.domain.booking_errors import BookingNotFoundError, ConcertNotFoundError
from src.service.booking.domain.entity.booking_entity import Booking


class CancelBookingUseCase:
    """
    Delete the caller's booking and credit its tickets back to the concert,
    in one unit of work. The credit is bounded by the concert's capacity.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        max_retries: int = settings.BOOKING_CONFLICT_MAX_RETRIES,
        backoff_seconds: float = settings.BOOKING_CONFLICT_BACKOFF_SECONDS,
    ) -> None:
        self.uow_factory = uow_factory
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work_factory]),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(self, *, booking_id: UUID, user_id: int) -> Booking:
        with self.tracer.start_as_current_span(
            'use_case.cancel_booking',
            attributes={'booking.id': str(booking_id), 'user.id': user_id},
        ):
            return await run_with_conflict_retry(
                lambda: self._cancel(booking_id=booking_id, user_id=user_id),
                operation='cancel',
                max_retries=self.max_retries,
                base_delay=self.backoff_seconds,
            )

    async def _cancel(self, *, booking_id: UUID, user_id: int) -> Booking:
        async with self.uow_factory() as uow:
            booking = await uow.booking_query_repo.get_by_id(booking_id=booking_id)
            if booking is None:
                raise BookingNotFoundError()
            booking.ensure_owned_by(user_id)

            await uow.booking_command_repo.delete(
                booking_id=booking.id, expected_tickets=booking.tickets_booked
            )
            try:
                available = await uow.inventory_ledger.release(
                    concert_id=booking.concert_id, quantity=booking.tickets_booked
                )
            except ConcertNotFoundError:
                # Concert removed from the catalog: nothing left to credit
                Logger.base.warning(
                    f'⚠️ [CANCEL] Concert {booking.concert_id} is gone, '
                    f'booking {booking.id} deleted without inventory release'
                )
                available = None

            await uow.commit()

        if available is not None:
            metrics.record_released(
                concert_id=booking.concert_id, quantity=booking.tickets_booked, available=available
            )
        Logger.base.info(
            f'🗑️ [CANCEL] Booking {booking.id} cancelled by user {user_id}, '
            f'{booking.tickets_booked} tickets released'
        )
        return booking
