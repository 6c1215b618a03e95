"""
Integration tests for the SQLAlchemy adapters (aiosqlite)

Test Focus:
1. Ledger conditional debit / capped release as single statements
2. Booking compare-and-swap writes surface lost races as BookingWriteConflictError
3. Unit of work rollback undoes the debit when the booking write fails
4. Full book / cancel use cases over SQL
5. Concurrent requests against a real database never oversell or pass the per-user cap
"""

from collections import Counter

import anyio
import pytest
import uuid_utils

from src.platform.exception.exceptions import CustomBaseError
from src.service.booking.app.command.book_tickets_use_case import BookTicketsUseCase
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.domain.booking_errors import (
    BookingWriteConflictError,
    ConcertNotFoundError,
    InsufficientInventoryError,
)
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.entity.user_entity import UserEntity, UserRole


def _new_booking(*, user_id: int = 1, concert_id: int = 1, quantity: int = 1) -> Booking:
    return Booking.create(
        id=uuid_utils.uuid7(),
        user_id=user_id,
        username=f'User {user_id}',
        concert_id=concert_id,
        quantity=quantity,
    )


async def _available(sql_uow_factory, concert_id: int = 1) -> int:
    async with sql_uow_factory() as uow:
        concert = await uow.concert_query_repo.get_by_id(concert_id=concert_id)
        return concert.available_tickets


@pytest.mark.integration
class TestInventoryLedgerImpl:
    async def test_reserve_until_exhausted(self, sql_uow_factory, seed_sql_concert):
        await seed_sql_concert(id=1, capacity=3)

        async with sql_uow_factory() as uow:
            first = await uow.inventory_ledger.reserve(concert_id=1, quantity=2)
            second = await uow.inventory_ledger.reserve(concert_id=1, quantity=2)
            await uow.commit()

        assert first.accepted and first.available_tickets == 1
        assert not second.accepted and second.available_tickets == 1
        assert await _available(sql_uow_factory) == 1

    async def test_release_capped_at_capacity(self, sql_uow_factory, seed_sql_concert):
        await seed_sql_concert(id=1, capacity=5, available_tickets=4)

        async with sql_uow_factory() as uow:
            available = await uow.inventory_ledger.release(concert_id=1, quantity=3)
            await uow.commit()

        assert available == 5

    async def test_unknown_concert(self, sql_uow_factory):
        async with sql_uow_factory() as uow:
            with pytest.raises(ConcertNotFoundError):
                await uow.inventory_ledger.reserve(concert_id=404, quantity=1)
            with pytest.raises(ConcertNotFoundError):
                await uow.inventory_ledger.release(concert_id=404, quantity=1)

    async def test_uncommitted_debit_is_rolled_back(self, sql_uow_factory, seed_sql_concert):
        await seed_sql_concert(id=1, capacity=5)

        async with sql_uow_factory() as uow:
            await uow.inventory_ledger.reserve(concert_id=1, quantity=3)
            # leaves without commit

        assert await _available(sql_uow_factory) == 5


@pytest.mark.integration
class TestBookingRepoImpl:
    async def test_create_and_read_back(self, sql_uow_factory, seed_sql_concert):
        await seed_sql_concert(id=1)
        booking = _new_booking(quantity=2)

        async with sql_uow_factory() as uow:
            await uow.booking_command_repo.create(booking=booking)
            await uow.commit()

        async with sql_uow_factory() as uow:
            by_id = await uow.booking_query_repo.get_by_id(booking_id=booking.id)
            by_pair = await uow.booking_query_repo.get_by_user_and_concert(user_id=1, concert_id=1)

        assert by_id is not None
        assert by_id.id == booking.id
        assert by_id.tickets_booked == 2
        assert by_pair is not None and by_pair.id == booking.id

    async def test_second_record_for_same_pair_conflicts(self, sql_uow_factory, seed_sql_concert):
        await seed_sql_concert(id=1)
        async with sql_uow_factory() as uow:
            await uow.booking_command_repo.create(booking=_new_booking())
            await uow.commit()

        async with sql_uow_factory() as uow:
            with pytest.raises(BookingWriteConflictError):
                await uow.booking_command_repo.create(booking=_new_booking())

    async def test_increment_is_compare_and_swap(self, sql_uow_factory, seed_sql_concert):
        await seed_sql_concert(id=1)
        booking = _new_booking(quantity=1)
        async with sql_uow_factory() as uow:
            await uow.booking_command_repo.create(booking=booking)
            await uow.commit()

        async with sql_uow_factory() as uow:
            updated = await uow.booking_command_repo.increment_tickets(
                booking_id=booking.id, expected_tickets=1, quantity=1
            )
            # stale observation: someone else already moved it to 2
            with pytest.raises(BookingWriteConflictError):
                await uow.booking_command_repo.increment_tickets(
                    booking_id=booking.id, expected_tickets=1, quantity=1
                )
            await uow.commit()

        assert updated.tickets_booked == 2

    async def test_increment_cannot_pass_cap(self, sql_uow_factory, seed_sql_concert):
        await seed_sql_concert(id=1)
        booking = _new_booking(quantity=3)
        async with sql_uow_factory() as uow:
            await uow.booking_command_repo.create(booking=booking)
            await uow.commit()

        async with sql_uow_factory() as uow:
            with pytest.raises(BookingWriteConflictError):
                await uow.booking_command_repo.increment_tickets(
                    booking_id=booking.id, expected_tickets=3, quantity=1
                )

    async def test_delete_is_compare_and_swap(self, sql_uow_factory, seed_sql_concert):
        await seed_sql_concert(id=1)
        booking = _new_booking(quantity=2)
        async with sql_uow_factory() as uow:
            await uow.booking_command_repo.create(booking=booking)
            await uow.commit()

        async with sql_uow_factory() as uow:
            with pytest.raises(BookingWriteConflictError):
                await uow.booking_command_repo.delete(booking_id=booking.id, expected_tickets=1)
            await uow.booking_command_repo.delete(booking_id=booking.id, expected_tickets=2)
            await uow.commit()

        async with sql_uow_factory() as uow:
            assert await uow.booking_query_repo.get_by_id(booking_id=booking.id) is None

    async def test_listings(self, sql_uow_factory, seed_sql_concert):
        await seed_sql_concert(id=1, name='First Show')
        await seed_sql_concert(id=2, name='Second Show')
        first = _new_booking(user_id=1, concert_id=1)
        second = _new_booking(user_id=1, concert_id=2)
        other = _new_booking(user_id=2, concert_id=1)
        async with sql_uow_factory() as uow:
            for booking in (first, second, other):
                await uow.booking_command_repo.create(booking=booking)
            await uow.commit()

        async with sql_uow_factory() as uow:
            mine = await uow.booking_query_repo.list_by_user(user_id=1)
            for_concert = await uow.booking_query_repo.list_by_concert(concert_id=1)
            concerts = await uow.concert_query_repo.get_many(concert_ids=[1, 2, 3])

        assert {b.id for b in mine} == {first.id, second.id}
        assert {b.id for b in for_concert} == {first.id, other.id}
        assert sorted(concerts) == [1, 2]
        assert concerts[2].name == 'Second Show'


@pytest.mark.integration
class TestUseCasesOverSql:
    @pytest.fixture
    def sql_book_use_case(self, sql_uow_factory, issue_ticket_use_case) -> BookTicketsUseCase:
        return BookTicketsUseCase(
            uow_factory=sql_uow_factory,
            issue_ticket_use_case=issue_ticket_use_case,
            backoff_seconds=0,
        )

    @pytest.fixture
    def sql_cancel_use_case(self, sql_uow_factory) -> CancelBookingUseCase:
        return CancelBookingUseCase(uow_factory=sql_uow_factory, backoff_seconds=0)

    async def test_capacity_three_scenario(
        self, sql_book_use_case, sql_uow_factory, seed_sql_concert, buyer, another_buyer
    ):
        await seed_sql_concert(id=1, capacity=3)

        first = await sql_book_use_case.execute(user=buyer, concert_id=1, quantity=2)
        with pytest.raises(InsufficientInventoryError, match='Only 1 tickets left.'):
            await sql_book_use_case.execute(user=another_buyer, concert_id=1, quantity=2)

        assert first.snapshot.available_tickets == 1
        assert await _available(sql_uow_factory) == 1
        async with sql_uow_factory() as uow:
            assert await uow.booking_query_repo.list_by_concert(concert_id=1) != []
            assert (
                await uow.booking_query_repo.get_by_user_and_concert(
                    user_id=another_buyer.id, concert_id=1
                )
                is None
            )

    async def test_book_accumulate_cancel_round_trip(
        self, sql_book_use_case, sql_cancel_use_case, sql_uow_factory, seed_sql_concert, buyer
    ):
        await seed_sql_concert(id=1, capacity=10)

        await sql_book_use_case.execute(user=buyer, concert_id=1, quantity=1)
        result = await sql_book_use_case.execute(user=buyer, concert_id=1, quantity=2)
        assert result.snapshot.tickets_booked == 3
        assert await _available(sql_uow_factory) == 7

        await sql_cancel_use_case.execute(booking_id=result.snapshot.booking_id, user_id=buyer.id)

        assert await _available(sql_uow_factory) == 10


async def _book_concurrently(use_case, requests: list[tuple[UserEntity, int]], concert_id: int):
    outcomes: list = [None] * len(requests)

    async def _one(index: int, user: UserEntity, quantity: int) -> None:
        try:
            outcomes[index] = await use_case.execute(
                user=user, concert_id=concert_id, quantity=quantity
            )
        except CustomBaseError as e:
            outcomes[index] = e

    async with anyio.create_task_group() as tg:
        for index, (user, quantity) in enumerate(requests):
            tg.start_soon(_one, index, user, quantity)
    return outcomes


@pytest.mark.integration
class TestConcurrentBookingOverSql:
    @pytest.fixture
    def contended_book_use_case(self, sql_uow_factory, issue_ticket_use_case) -> BookTicketsUseCase:
        return BookTicketsUseCase(
            uow_factory=sql_uow_factory,
            issue_ticket_use_case=issue_ticket_use_case,
            max_retries=10,
            backoff_seconds=0.001,
        )

    async def test_capacity_five_ten_concurrent_requests(
        self, contended_book_use_case, sql_uow_factory, seed_sql_concert
    ):
        # Given
        await seed_sql_concert(id=1, capacity=5)
        buyers = [
            UserEntity(id=user_id, email=f'buyer{user_id}@test.com', role=UserRole.BUYER)
            for user_id in range(1, 11)
        ]

        # When
        outcomes = await _book_concurrently(
            contended_book_use_case, [(buyer, 1) for buyer in buyers], concert_id=1
        )

        # Then
        kinds = Counter(type(outcome).__name__ for outcome in outcomes)
        assert kinds == {'BookingResult': 5, 'InsufficientInventoryError': 5}
        assert await _available(sql_uow_factory) == 0
        async with sql_uow_factory() as uow:
            bookings = await uow.booking_query_repo.list_by_concert(concert_id=1)
        assert sum(booking.tickets_booked for booking in bookings) == 5

    async def test_cap_holds_for_concurrent_requests_from_one_user(
        self, contended_book_use_case, sql_uow_factory, seed_sql_concert, buyer
    ):
        await seed_sql_concert(id=1, capacity=50)

        outcomes = await _book_concurrently(contended_book_use_case, [(buyer, 1)] * 6, concert_id=1)

        kinds = Counter(type(outcome).__name__ for outcome in outcomes)
        assert kinds == {'BookingResult': 3, 'TicketCapExceededError': 3}
        assert await _available(sql_uow_factory) == 47
        async with sql_uow_factory() as uow:
            (booking,) = await uow.booking_query_repo.list_by_concert(concert_id=1)
        assert booking.tickets_booked == 3
