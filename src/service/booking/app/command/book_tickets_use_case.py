from time import perf_counter
from typing import Any, Optional, Self

from anyio.abc import TaskGroup
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
import uuid_utils

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.command.conflict_retry import run_with_conflict_retry
from src.service.booking.app.command.issue_ticket_use_case import IssueTicketUseCase
from src.service.booking.app.dto.booking_result import (
    BookingResult,
    IssuanceOutcome,
    IssuanceStatus,
)
from src.service.booking.app.dto.booking_snapshot import BookingSnapshot
from src.service.booking.domain.booking_errors import (
    ConcertNotFoundError,
    InsufficientInventoryError,
)
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.entity.user_entity import UserEntity


class BookTicketsUseCase:
    """
    Reservation engine: turn a booking request into an inventory debit plus a
    booking upsert, atomically.

    Flow (one unit of work per attempt):
    1. Validate quantity (1..3)
    2. Load concert and the caller's existing booking for it
    3. Enforce the per-user cap on the cumulative count
    4. Conditional debit on the inventory ledger (rejection -> 409, nothing written)
    5. Insert or compare-and-swap increment the booking, commit
    6. Launch ticket issuance; its failure never affects the reservation

    A lost race on the booking row rolls back the whole unit (debit included)
    and the attempt is re-run, a bounded number of times.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        issue_ticket_use_case: IssueTicketUseCase,
        task_group: Optional[TaskGroup] = None,
        max_retries: int = settings.BOOKING_CONFLICT_MAX_RETRIES,
        backoff_seconds: float = settings.BOOKING_CONFLICT_BACKOFF_SECONDS,
    ) -> None:
        self.uow_factory = uow_factory
        self.issue_ticket_use_case = issue_ticket_use_case
        self.task_group = task_group
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work_factory]),
        issue_ticket_use_case: IssueTicketUseCase = Depends(
            Provide[Container.issue_ticket_use_case]
        ),
        task_group: Optional[TaskGroup] = Depends(Provide[Container.task_group]),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            issue_ticket_use_case=issue_ticket_use_case,
            task_group=task_group,
        )

    @Logger.io
    async def execute(self, *, user: UserEntity, concert_id: int, quantity: Any) -> BookingResult:
        started = perf_counter()
        with self.tracer.start_as_current_span(
            'use_case.book_tickets',
            attributes={'user.id': user.id, 'concert.id': concert_id},
        ):
            try:
                Booking.validate_quantity(quantity)
                snapshot = await run_with_conflict_retry(
                    lambda: self._reserve(user=user, concert_id=concert_id, quantity=quantity),
                    operation='book',
                    max_retries=self.max_retries,
                    base_delay=self.backoff_seconds,
                )
            except CustomBaseError as e:
                metrics.record_booking(
                    concert_id=concert_id,
                    result=type(e).__name__,
                    duration=perf_counter() - started,
                )
                raise

            metrics.record_booking(
                concert_id=concert_id, result='booked', duration=perf_counter() - started
            )
            Logger.base.info(
                f'🎟️ [BOOKING] user={user.id} concert={concert_id} +{quantity} '
                f'-> {snapshot.tickets_booked} held, {snapshot.available_tickets} left '
                f'(booking {snapshot.booking_id})'
            )

            issuance = await self._launch_issuance(snapshot=snapshot)
            return BookingResult(snapshot=snapshot, issuance=issuance)

    async def _reserve(self, *, user: UserEntity, concert_id: int, quantity: int) -> BookingSnapshot:
        async with self.uow_factory() as uow:
            concert = await uow.concert_query_repo.get_by_id(concert_id=concert_id)
            if concert is None:
                raise ConcertNotFoundError()

            existing = await uow.booking_query_repo.get_by_user_and_concert(
                user_id=user.id, concert_id=concert_id
            )
            Booking.ensure_within_cap(
                already_booked=existing.tickets_booked if existing else 0, quantity=quantity
            )

            ledger = await uow.inventory_ledger.reserve(concert_id=concert_id, quantity=quantity)
            if not ledger.accepted:
                raise InsufficientInventoryError(available_tickets=ledger.available_tickets)

            if existing is None:
                booking = await uow.booking_command_repo.create(
                    booking=Booking.create(
                        id=uuid_utils.uuid7(),
                        user_id=user.id,
                        username=user.display_name,
                        concert_id=concert_id,
                        quantity=quantity,
                    )
                )
            else:
                booking = await uow.booking_command_repo.increment_tickets(
                    booking_id=existing.id,
                    expected_tickets=existing.tickets_booked,
                    quantity=quantity,
                )

            await uow.commit()

        metrics.record_reserved(
            concert_id=concert_id, quantity=quantity, available=ledger.available_tickets
        )
        return BookingSnapshot.from_booking(
            booking=booking,
            concert=concert,
            tickets_requested=quantity,
            recipient_email=user.email or None,
            available_tickets=ledger.available_tickets,
        )

    async def _launch_issuance(self, *, snapshot: BookingSnapshot) -> IssuanceOutcome:
        if self.task_group is not None:
            self.task_group.start_soon(self.issue_ticket_use_case.issue_in_background, snapshot)
            return IssuanceOutcome(status=IssuanceStatus.SCHEDULED)
        return await self.issue_ticket_use_case.issue_in_background(snapshot)
