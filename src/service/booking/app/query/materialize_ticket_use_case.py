from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.booking_snapshot import BookingSnapshot
from src.service.booking.app.dto.ticket_artifact import TicketArtifact
from src.service.booking.app.interface.i_ticket_renderer import ITicketRenderer
from src.service.booking.domain.booking_errors import BookingNotFoundError, ConcertNotFoundError
from src.service.booking.domain.entity.user_entity import UserEntity


class MaterializeTicketUseCase:
    """
    Download-on-demand: re-render the ticket from the stored booking and
    concert facts. Independent of whether issuance ever succeeded, and
    repeatable: every call renders the same human-readable content.
    """

    def __init__(self, *, uow_factory: UnitOfWorkFactory, ticket_renderer: ITicketRenderer) -> None:
        self.uow_factory = uow_factory
        self.ticket_renderer = ticket_renderer
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work_factory]),
        ticket_renderer: ITicketRenderer = Depends(Provide[Container.ticket_renderer]),
    ) -> Self:
        return cls(uow_factory=uow_factory, ticket_renderer=ticket_renderer)

    @Logger.io
    async def execute(
        self, *, booking_id: UUID, requester: Optional[UserEntity] = None
    ) -> TicketArtifact:
        with self.tracer.start_as_current_span(
            'use_case.materialize_ticket', attributes={'booking.id': str(booking_id)}
        ):
            async with self.uow_factory() as uow:
                booking = await uow.booking_query_repo.get_by_id(booking_id=booking_id)
                if booking is None:
                    raise BookingNotFoundError()
                if requester is not None and not requester.is_admin:
                    booking.ensure_owned_by(requester.id)
                concert = await uow.concert_query_repo.get_by_id(concert_id=booking.concert_id)
                if concert is None:
                    raise ConcertNotFoundError()

            # Render outside the unit of work so no transaction is held open
            return await self.ticket_renderer.render(
                snapshot=BookingSnapshot.from_booking(booking=booking, concert=concert)
            )
