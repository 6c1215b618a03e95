from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.types import UtilsUUID7
from src.service.booking.app.command.book_tickets_use_case import BookTicketsUseCase
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.app.query.get_booking_use_case import GetBookingUseCase
from src.service.booking.app.query.list_bookings_use_case import ListBookingsUseCase
from src.service.booking.app.query.materialize_ticket_use_case import MaterializeTicketUseCase
from src.service.booking.domain.entity.user_entity import UserEntity
from src.service.booking.driving_adapter.http_controller.auth.role_auth import (
    get_current_user,
    require_admin,
    require_booker,
)
from src.service.booking.driving_adapter.http_controller.schema.booking_schema import (
    BookingCreateRequest,
    BookingDetailResponse,
    BookingListItem,
    BookingResponse,
    CancelBookingResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.get('/my_bookings', response_model=List[BookingListItem])
@Logger.io
async def list_my_bookings(
    current_user: UserEntity = Depends(get_current_user),
    use_case: ListBookingsUseCase = Depends(ListBookingsUseCase.depends),
) -> List[BookingListItem]:
    snapshots = await use_case.list_user_bookings(user_id=current_user.id)
    return [BookingListItem.from_snapshot(snapshot) for snapshot in snapshots]


@router.get('/concert/{concert_id}/bookings', response_model=List[BookingListItem])
@Logger.io
async def list_concert_bookings(
    concert_id: int,
    current_user: UserEntity = Depends(require_admin),
    use_case: ListBookingsUseCase = Depends(ListBookingsUseCase.depends),
) -> List[BookingListItem]:
    snapshots = await use_case.list_concert_bookings(concert_id=concert_id)
    return [BookingListItem.from_snapshot(snapshot) for snapshot in snapshots]


@router.post('/concert/{concert_id}', status_code=status.HTTP_201_CREATED)
@Logger.io
async def book_tickets(
    concert_id: int,
    request: BookingCreateRequest,
    current_user: UserEntity = Depends(require_booker),
    use_case: BookTicketsUseCase = Depends(BookTicketsUseCase.depends),
) -> BookingResponse:
    with tracer.start_as_current_span('controller.book_tickets') as span:
        span.set_attribute('concert.id', concert_id)
        span.set_attribute('user.id', current_user.id)

        result = await use_case.execute(
            user=current_user, concert_id=concert_id, quantity=request.tickets
        )

        span.set_attribute('booking.id', str(result.snapshot.booking_id))
        return BookingResponse.from_result(result)


@router.get('/{booking_id}/ticket')
@Logger.io
async def download_ticket(
    booking_id: UtilsUUID7,
    current_user: UserEntity = Depends(get_current_user),
    use_case: MaterializeTicketUseCase = Depends(MaterializeTicketUseCase.depends),
) -> Response:
    artifact = await use_case.execute(booking_id=booking_id, requester=current_user)
    return Response(
        content=artifact.pdf,
        media_type='application/pdf',
        headers={'Content-Disposition': f'attachment; filename="{artifact.filename}"'},
    )


@router.get('/{booking_id}')
@Logger.io
async def get_booking(
    booking_id: UtilsUUID7,
    current_user: UserEntity = Depends(get_current_user),
    use_case: GetBookingUseCase = Depends(GetBookingUseCase.depends),
) -> BookingDetailResponse:
    snapshot = await use_case.execute(booking_id=booking_id, requester=current_user)
    return BookingDetailResponse.from_snapshot(snapshot)


@router.delete('/{booking_id}', status_code=status.HTTP_200_OK)
@Logger.io
async def cancel_booking(
    booking_id: UtilsUUID7,
    current_user: UserEntity = Depends(get_current_user),
    use_case: CancelBookingUseCase = Depends(CancelBookingUseCase.depends),
) -> CancelBookingResponse:
    booking = await use_case.execute(booking_id=booking_id, user_id=current_user.id)
    return CancelBookingResponse(
        booking_id=booking.id,
        released_tickets=booking.tickets_booked,
        cancelled_at=datetime.now(timezone.utc),
    )
