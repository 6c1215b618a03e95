"""
In-memory Booking Store

Single-process stand-in for the database, used for local development
(STORAGE_BACKEND=memory) and tests. Entities are never mutated in place;
every write replaces the dict entry with an ``attrs.evolve`` copy, so a
shallow copy of the dicts is a consistent snapshot.
"""

from typing import Dict, Iterable, List, Optional, Tuple

import anyio
import attrs
from uuid_utils import UUID

from src.service.booking.app.dto.booking_result import LedgerResult
from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.app.interface.i_concert_query_repo import IConcertQueryRepo
from src.service.booking.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.booking.domain.booking_errors import (
    BookingWriteConflictError,
    ConcertNotFoundError,
)
from src.service.booking.domain.entity.booking_entity import MAX_TICKETS_PER_USER, Booking
from src.service.booking.domain.entity.concert_entity import Concert


StoreSnapshot = Tuple[Dict[int, Concert], Dict[str, Booking]]


class InMemoryBookingStore:
    def __init__(self) -> None:
        self.concerts: Dict[int, Concert] = {}
        self.bookings: Dict[str, Booking] = {}
        self._lock: Optional[anyio.Lock] = None

    @property
    def lock(self) -> anyio.Lock:
        # Created on first use so it binds to the running event loop
        if self._lock is None:
            self._lock = anyio.Lock()
        return self._lock

    def add_concert(self, concert: Concert) -> Concert:
        self.concerts[concert.id] = concert
        return concert

    def snapshot(self) -> StoreSnapshot:
        return dict(self.concerts), dict(self.bookings)

    def restore(self, snapshot: StoreSnapshot) -> None:
        concerts, bookings = snapshot
        self.concerts = dict(concerts)
        self.bookings = dict(bookings)


class InMemoryInventoryLedger(IInventoryLedger):
    def __init__(self, *, store: InMemoryBookingStore) -> None:
        self.store = store

    def _get(self, concert_id: int) -> Concert:
        concert = self.store.concerts.get(concert_id)
        if concert is None:
            raise ConcertNotFoundError()
        return concert

    async def reserve(self, *, concert_id: int, quantity: int) -> LedgerResult:
        concert = self._get(concert_id)
        if concert.available_tickets < quantity:
            return LedgerResult(accepted=False, available_tickets=concert.available_tickets)
        remaining = concert.available_tickets - quantity
        self.store.concerts[concert_id] = attrs.evolve(concert, available_tickets=remaining)
        return LedgerResult(accepted=True, available_tickets=remaining)

    async def release(self, *, concert_id: int, quantity: int) -> int:
        concert = self._get(concert_id)
        available = min(concert.available_tickets + quantity, concert.capacity)
        self.store.concerts[concert_id] = attrs.evolve(concert, available_tickets=available)
        return available


class InMemoryBookingCommandRepo(IBookingCommandRepo):
    def __init__(self, *, store: InMemoryBookingStore) -> None:
        self.store = store

    async def create(self, *, booking: Booking) -> Booking:
        for existing in self.store.bookings.values():
            if existing.user_id == booking.user_id and existing.concert_id == booking.concert_id:
                raise BookingWriteConflictError()
        self.store.bookings[str(booking.id)] = booking
        return attrs.evolve(booking)

    async def increment_tickets(
        self, *, booking_id: UUID, expected_tickets: int, quantity: int
    ) -> Booking:
        current = self.store.bookings.get(str(booking_id))
        if (
            current is None
            or current.tickets_booked != expected_tickets
            or current.tickets_booked + quantity > MAX_TICKETS_PER_USER
        ):
            raise BookingWriteConflictError()
        updated = current.add_tickets(quantity)
        self.store.bookings[str(booking_id)] = updated
        return attrs.evolve(updated)

    async def delete(self, *, booking_id: UUID, expected_tickets: int) -> None:
        current = self.store.bookings.get(str(booking_id))
        if current is None or current.tickets_booked != expected_tickets:
            raise BookingWriteConflictError()
        del self.store.bookings[str(booking_id)]


class InMemoryBookingQueryRepo(IBookingQueryRepo):
    def __init__(self, *, store: InMemoryBookingStore) -> None:
        self.store = store

    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        booking = self.store.bookings.get(str(booking_id))
        return attrs.evolve(booking) if booking else None

    async def get_by_user_and_concert(self, *, user_id: int, concert_id: int) -> Optional[Booking]:
        for booking in self.store.bookings.values():
            if booking.user_id == user_id and booking.concert_id == concert_id:
                return attrs.evolve(booking)
        return None

    async def list_by_user(self, *, user_id: int) -> List[Booking]:
        bookings = [b for b in self.store.bookings.values() if b.user_id == user_id]
        # UUID7 ids sort by creation time
        return sorted(bookings, key=lambda b: str(b.id), reverse=True)

    async def list_by_concert(self, *, concert_id: int) -> List[Booking]:
        bookings = [b for b in self.store.bookings.values() if b.concert_id == concert_id]
        return sorted(bookings, key=lambda b: str(b.id))


class InMemoryConcertQueryRepo(IConcertQueryRepo):
    def __init__(self, *, store: InMemoryBookingStore) -> None:
        self.store = store

    async def get_by_id(self, *, concert_id: int) -> Optional[Concert]:
        concert = self.store.concerts.get(concert_id)
        return attrs.evolve(concert) if concert else None

    async def get_many(self, *, concert_ids: Iterable[int]) -> Dict[int, Concert]:
        return {
            concert_id: attrs.evolve(self.store.concerts[concert_id])
            for concert_id in set(concert_ids)
            if concert_id in self.store.concerts
        }
