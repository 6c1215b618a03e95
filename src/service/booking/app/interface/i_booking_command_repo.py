from abc import ABC, abstractmethod

from uuid_utils import UUID

from src.service.booking.domain.entity.booking_entity import Booking


class IBookingCommandRepo(ABC):
    """Repository interface for booking write operations"""

    @abstractmethod
    async def create(self, *, booking: Booking) -> Booking:
        """
        Raises:
            BookingWriteConflictError: a booking for (user, concert) already exists
        """
        pass

    @abstractmethod
    async def increment_tickets(
        self, *, booking_id: UUID, expected_tickets: int, quantity: int
    ) -> Booking:
        """
        Compare-and-swap increment keyed on the previously observed count.

        Raises:
            BookingWriteConflictError: the row changed (or vanished) since it was read
        """
        pass

    @abstractmethod
    async def delete(self, *, booking_id: UUID, expected_tickets: int) -> None:
        """
        Raises:
            BookingWriteConflictError: the row changed (or vanished) since it was read
        """
        pass
