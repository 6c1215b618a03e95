from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from src.platform.types import UtilsUUID7
from src.service.booking.app.dto.booking_result import BookingResult, IssuanceOutcome
from src.service.booking.app.dto.booking_snapshot import BookingSnapshot


class BookingCreateRequest(BaseModel):
    # Left untyped so a bad value gets the booking-range message, not a pydantic error
    tickets: Any = None

    class Config:
        json_schema_extra = {'example': {'tickets': 2}}


class IssuanceResponse(BaseModel):
    status: str
    detail: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: IssuanceOutcome) -> 'IssuanceResponse':
        return cls(status=outcome.status.value, detail=outcome.detail)


class BookingResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'message': 'Tickets booked successfully',
                'booking_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'concert_id': 1,
                'concert_name': 'Summer Nights',
                'tickets_requested': 2,
                'tickets_booked': 3,
                'available_tickets': 47,
                'issuance': {'status': 'scheduled', 'detail': None},
            }
        },
    }

    message: str = 'Tickets booked successfully'
    booking_id: UtilsUUID7
    concert_id: int
    concert_name: str
    tickets_requested: int
    tickets_booked: int
    available_tickets: Optional[int] = None
    issuance: IssuanceResponse

    @classmethod
    def from_result(cls, result: BookingResult) -> 'BookingResponse':
        snapshot = result.snapshot
        return cls(
            booking_id=snapshot.booking_id,
            concert_id=snapshot.concert_id,
            concert_name=snapshot.concert_name,
            tickets_requested=snapshot.tickets_requested,
            tickets_booked=snapshot.tickets_booked,
            available_tickets=snapshot.available_tickets,
            issuance=IssuanceResponse.from_outcome(result.issuance),
        )


class BookingDetailResponse(BaseModel):
    booking_id: UtilsUUID7
    user_id: int
    username: str
    concert_id: int
    concert_name: str
    venue: str
    schedule: str
    tickets_booked: int
    available_tickets: Optional[int] = None

    @classmethod
    def from_snapshot(cls, snapshot: BookingSnapshot) -> 'BookingDetailResponse':
        return cls(
            booking_id=snapshot.booking_id,
            user_id=snapshot.user_id,
            username=snapshot.username,
            concert_id=snapshot.concert_id,
            concert_name=snapshot.concert_name,
            venue=snapshot.venue,
            schedule=snapshot.schedule,
            tickets_booked=snapshot.tickets_booked,
            available_tickets=snapshot.available_tickets,
        )


class BookingListItem(BaseModel):
    booking_id: UtilsUUID7
    user_id: int
    username: str
    concert_id: int
    concert_name: str
    tickets_booked: int

    @classmethod
    def from_snapshot(cls, snapshot: BookingSnapshot) -> 'BookingListItem':
        return cls(
            booking_id=snapshot.booking_id,
            user_id=snapshot.user_id,
            username=snapshot.username,
            concert_id=snapshot.concert_id,
            concert_name=snapshot.concert_name,
            tickets_booked=snapshot.tickets_booked,
        )


class CancelBookingResponse(BaseModel):
    message: str = 'Booking canceled successfully'
    booking_id: UtilsUUID7
    released_tickets: int
    cancelled_at: datetime
