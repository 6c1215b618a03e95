from datetime import datetime, timezone
from typing import Any, Optional

import attrs
from uuid_utils import UUID

from src.service.booking.domain.booking_errors import (
    InvalidTicketQuantityError,
    NotBookingOwnerError,
    TicketCapExceededError,
)


MIN_TICKETS_PER_REQUEST = 1
MAX_TICKETS_PER_USER = 3


@attrs.define
class Booking:
    """
    A user's holding for one concert.

    There is at most one Booking per (user, concert); later requests
    accumulate into it and the cumulative count never exceeds
    MAX_TICKETS_PER_USER.
    """

    id: UUID
    user_id: int
    username: str
    concert_id: int
    tickets_booked: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @staticmethod
    def validate_quantity(quantity: Any) -> int:
        # bool is an int subclass; True must not count as one ticket
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidTicketQuantityError()
        if not MIN_TICKETS_PER_REQUEST <= quantity <= MAX_TICKETS_PER_USER:
            raise InvalidTicketQuantityError()
        return quantity

    @staticmethod
    def ensure_within_cap(*, already_booked: int, quantity: int) -> None:
        if already_booked + quantity > MAX_TICKETS_PER_USER:
            raise TicketCapExceededError(
                already_booked=already_booked, max_tickets=MAX_TICKETS_PER_USER
            )

    @classmethod
    def create(
        cls, *, id: UUID, user_id: int, username: str, concert_id: int, quantity: int
    ) -> 'Booking':
        cls.validate_quantity(quantity)
        now = datetime.now(timezone.utc)
        return cls(
            id=id,
            user_id=user_id,
            username=username,
            concert_id=concert_id,
            tickets_booked=quantity,
            created_at=now,
            updated_at=now,
        )

    @property
    def remaining_allowance(self) -> int:
        return MAX_TICKETS_PER_USER - self.tickets_booked

    def add_tickets(self, quantity: int) -> 'Booking':
        self.validate_quantity(quantity)
        self.ensure_within_cap(already_booked=self.tickets_booked, quantity=quantity)
        return attrs.evolve(
            self,
            tickets_booked=self.tickets_booked + quantity,
            updated_at=datetime.now(timezone.utc),
        )

    def ensure_owned_by(self, user_id: int) -> None:
        if self.user_id != user_id:
            raise NotBookingOwnerError()
