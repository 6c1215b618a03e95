"""Booking snapshot DTO."""

from typing import Optional

import attrs
from uuid_utils import UUID

from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.entity.concert_entity import Concert


UNKNOWN_CONCERT_NAME = 'Unknown Concert'


@attrs.define(frozen=True)
class BookingSnapshot:
    """
    Immutable view of a booking joined with its concert.

    Carries everything the ticket renderer and the mail body need, so
    issuance never has to go back to storage.
    """

    booking_id: UUID
    user_id: int
    username: str
    concert_id: int
    concert_name: str
    venue: str
    schedule: str
    tickets_booked: int
    tickets_requested: int = 0
    recipient_email: Optional[str] = None
    available_tickets: Optional[int] = None

    @classmethod
    def from_booking(
        cls,
        *,
        booking: Booking,
        concert: Optional[Concert],
        tickets_requested: int = 0,
        recipient_email: Optional[str] = None,
        available_tickets: Optional[int] = None,
    ) -> 'BookingSnapshot':
        # Listings still show bookings whose concert left the catalog
        return cls(
            booking_id=booking.id,
            user_id=booking.user_id,
            username=booking.username,
            concert_id=booking.concert_id,
            concert_name=concert.name if concert else UNKNOWN_CONCERT_NAME,
            venue=concert.venue if concert else '',
            schedule=concert.schedule if concert else '',
            tickets_booked=booking.tickets_booked,
            tickets_requested=tickets_requested,
            recipient_email=recipient_email,
            available_tickets=available_tickets,
        )
