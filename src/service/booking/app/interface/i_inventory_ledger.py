from abc import ABC, abstractmethod

from src.service.booking.app.dto.booking_result import LedgerResult


class IInventoryLedger(ABC):
    """
    Sole owner of a concert's available_tickets counter.

    Both operations are single conditional writes, linearizable per concert.
    """

    @abstractmethod
    async def reserve(self, *, concert_id: int, quantity: int) -> LedgerResult:
        """
        Debit `quantity` only if at least that many tickets are available.

        Raises:
            ConcertNotFoundError: unknown concert
        """
        pass

    @abstractmethod
    async def release(self, *, concert_id: int, quantity: int) -> int:
        """
        Credit `quantity` back, never above the concert's capacity.

        Returns the new available count.

        Raises:
            ConcertNotFoundError: unknown concert
        """
        pass
