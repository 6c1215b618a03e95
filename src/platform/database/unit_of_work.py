"""
Unit of Work: one transaction spanning the inventory ledger and the booking repositories

- UoW owns the session lifecycle and commit/rollback
- Repositories obtain the shared session from the UoW
- Use cases coordinate repositories through the UoW

Leaving the ``async with`` block without ``commit()`` rolls everything back,
including an inventory debit already applied inside the block.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.platform.database.orm_db_setting import get_session_maker


if TYPE_CHECKING:
    from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
    from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
    from src.service.booking.app.interface.i_concert_query_repo import IConcertQueryRepo
    from src.service.booking.app.interface.i_inventory_ledger import IInventoryLedger


class AbstractUnitOfWork(abc.ABC):
    """
    Usage:
        async with uow_factory() as uow:
            result = await uow.inventory_ledger.reserve(concert_id=1, quantity=2)
            await uow.booking_command_repo.create(booking=...)
            await uow.commit()
    """

    inventory_ledger: IInventoryLedger
    booking_command_repo: IBookingCommandRepo
    booking_query_repo: IBookingQueryRepo
    concert_query_repo: IConcertQueryRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    async def commit(self) -> None:
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


UnitOfWorkFactory = Callable[[], AbstractUnitOfWork]


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(
        self,
        session_maker_factory: Callable[
            [], async_sessionmaker[AsyncSession]
        ] = get_session_maker,
    ) -> None:
        self._session_maker_factory = session_maker_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> AbstractUnitOfWork:
        from src.service.booking.driven_adapter.repo.booking_command_repo_impl import (
            BookingCommandRepoImpl,
        )
        from src.service.booking.driven_adapter.repo.booking_query_repo_impl import (
            BookingQueryRepoImpl,
        )
        from src.service.booking.driven_adapter.repo.concert_query_repo_impl import (
            ConcertQueryRepoImpl,
        )
        from src.service.booking.driven_adapter.repo.inventory_ledger_impl import (
            InventoryLedgerImpl,
        )

        self.session = self._session_maker_factory()()
        self.inventory_ledger = InventoryLedgerImpl(session=self.session)
        self.booking_command_repo = BookingCommandRepoImpl(session=self.session)
        self.booking_query_repo = BookingQueryRepoImpl(session=self.session)
        self.concert_query_repo = ConcertQueryRepoImpl(session=self.session)
        return await super().__aenter__()

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            if self.session is not None:
                await self.session.close()
                self.session = None

    async def _commit(self) -> None:
        assert self.session is not None, 'commit() outside of async with'
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
