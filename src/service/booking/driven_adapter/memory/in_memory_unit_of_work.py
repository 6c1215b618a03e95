from typing import Optional

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.service.booking.driven_adapter.memory.in_memory_booking_store import (
    InMemoryBookingCommandRepo,
    InMemoryBookingQueryRepo,
    InMemoryBookingStore,
    InMemoryConcertQueryRepo,
    InMemoryInventoryLedger,
    StoreSnapshot,
)


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """
    Holds the store lock for the whole unit, so units are serializable.
    Rollback restores the snapshot taken on entry (or at the last commit).
    """

    def __init__(self, *, store: InMemoryBookingStore) -> None:
        self.store = store
        self._snapshot: Optional[StoreSnapshot] = None
        self.inventory_ledger = InMemoryInventoryLedger(store=store)
        self.booking_command_repo = InMemoryBookingCommandRepo(store=store)
        self.booking_query_repo = InMemoryBookingQueryRepo(store=store)
        self.concert_query_repo = InMemoryConcertQueryRepo(store=store)
        self.committed = False

    async def __aenter__(self) -> AbstractUnitOfWork:
        await self.store.lock.acquire()
        self._snapshot = self.store.snapshot()
        self.committed = False
        return await super().__aenter__()

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            self._snapshot = None
            self.store.lock.release()

    async def _commit(self) -> None:
        self._snapshot = self.store.snapshot()
        self.committed = True

    async def rollback(self) -> None:
        if self._snapshot is not None:
            self.store.restore(self._snapshot)
