"""
Inventory Ledger (SQLAlchemy)

Each operation is one conditional UPDATE ... RETURNING, so the database
serializes concurrent writers on the concert row and no read-then-write
window exists:

    reserve: available = available - q      WHERE available >= q
    release: available = min(available + q, capacity)
"""

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.booking_result import LedgerResult
from src.service.booking.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.booking.domain.booking_errors import ConcertNotFoundError
from src.service.booking.driven_adapter.model.concert_model import ConcertModel


class InventoryLedgerImpl(IInventoryLedger):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    async def _current_available(self, *, concert_id: int) -> int:
        available = await self.session.scalar(
            select(ConcertModel.available_tickets).where(ConcertModel.id == concert_id)
        )
        if available is None:
            raise ConcertNotFoundError()
        return available

    @Logger.io
    async def reserve(self, *, concert_id: int, quantity: int) -> LedgerResult:
        result = await self.session.execute(
            update(ConcertModel)
            .where(
                ConcertModel.id == concert_id,
                ConcertModel.available_tickets >= quantity,
            )
            .values(available_tickets=ConcertModel.available_tickets - quantity)
            .returning(ConcertModel.available_tickets)
            .execution_options(synchronize_session=False)
        )
        remaining = result.scalar_one_or_none()
        if remaining is not None:
            return LedgerResult(accepted=True, available_tickets=remaining)

        # Rejected: read the count only to report it back
        available = await self._current_available(concert_id=concert_id)
        return LedgerResult(accepted=False, available_tickets=available)

    @Logger.io
    async def release(self, *, concert_id: int, quantity: int) -> int:
        restored = ConcertModel.available_tickets + quantity
        result = await self.session.execute(
            update(ConcertModel)
            .where(ConcertModel.id == concert_id)
            .values(
                available_tickets=case(
                    (restored > ConcertModel.capacity, ConcertModel.capacity),
                    else_=restored,
                )
            )
            .returning(ConcertModel.available_tickets)
            .execution_options(synchronize_session=False)
        )
        available = result.scalar_one_or_none()
        if available is None:
            raise ConcertNotFoundError()
        return available
