"""
Test Configuration and Fixtures

This module provides:
- Environment setup (sqlite database file, console mail, private scratch dir)
- In-memory store + unit of work fixtures for use case and concurrency tests
- SQLAlchemy engine/unit of work fixtures backed by aiosqlite
- A TestClient over the real app with a test lifespan (issuance runs inline)

Architecture:
- Unit tests (test/**/unit/): pure logic, mocks or the in-memory store
- Integration tests (test/**/integration/): real SQL (sqlite) and the HTTP layer
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# settings/path constants are read at import time
# =============================================================================
import os
from pathlib import Path
import tempfile


def _early_setup_test_environment() -> None:
    """Set test environment variables before any module imports."""
    test_tmp_dir = Path(tempfile.mkdtemp(prefix='concert_booking_test_'))

    os.environ['STORAGE_BACKEND'] = 'sql'
    os.environ['DATABASE_URL'] = f'sqlite+aiosqlite:///{test_tmp_dir / "booking_test.db"}'
    os.environ['MAIL_BACKEND'] = 'console'
    os.environ['SECRET_KEY'] = 'test_secret_key'
    os.environ['ALGORITHM'] = 'HS256'
    os.environ['BOOKING_CONFLICT_BACKOFF_SECONDS'] = '0.001'
    os.environ['TICKET_SCRATCH_DIR'] = str(test_tmp_dir / 'scratch')
    os.environ['TICKET_ISSUANCE_TIMEOUT_SECONDS'] = '10'
    os.environ.pop('TICKET_QR_SIGNING_KEY', None)

    # Create test log directory
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)


# Call immediately to set env vars before any imports
_early_setup_test_environment()

from collections.abc import AsyncIterator, Callable, Iterator, Sequence  # noqa: E402
from contextlib import asynccontextmanager, closing  # noqa: E402
from functools import partial  # noqa: E402
import sqlite3  # noqa: E402
from typing import Any  # noqa: E402

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.engine import make_url  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine  # noqa: E402

from src.platform.app_factory import create_app  # noqa: E402
from src.platform.config.core_setting import settings  # noqa: E402
from src.platform.config.di import cleanup, container  # noqa: E402
from src.platform.config.wire_modules import WIRE_MODULES  # noqa: E402
from src.platform.database.orm_db_setting import (  # noqa: E402
    create_db_and_tables,
    dispose_engine,
)
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork  # noqa: E402
from src.platform.logging.loguru_io import Logger  # noqa: E402
from src.service.booking.app.command.book_tickets_use_case import BookTicketsUseCase  # noqa: E402
from src.service.booking.app.command.cancel_booking_use_case import (  # noqa: E402
    CancelBookingUseCase,
)
from src.service.booking.app.command.issue_ticket_use_case import IssueTicketUseCase  # noqa: E402
from src.service.booking.domain.entity.concert_entity import Concert  # noqa: E402
from src.service.booking.domain.entity.user_entity import UserEntity, UserRole  # noqa: E402
from src.service.booking.driven_adapter.artifact.qr_pdf_ticket_renderer import (  # noqa: E402
    QrPdfTicketRenderer,
)
from src.service.booking.driven_adapter.memory.in_memory_booking_store import (  # noqa: E402
    InMemoryBookingStore,
)
from src.service.booking.driven_adapter.memory.in_memory_unit_of_work import (  # noqa: E402
    InMemoryUnitOfWork,
)
from src.service.booking.driven_adapter.model.concert_model import ConcertModel  # noqa: E402
from src.service.booking.driven_adapter.notification.console_notification_dispatcher import (  # noqa: E402
    ConsoleNotificationDispatcher,
)
from src.service.booking.driving_adapter.http_controller.auth.jwt_auth import JwtAuth  # noqa: E402
from src.service.booking.driving_adapter.http_controller.auth.role_auth import (  # noqa: E402
    AUTH_COOKIE_NAME,
)


# =============================================================================
# Identities
# =============================================================================
BUYER = UserEntity(id=1, email='buyer@test.com', name='Test Buyer', role=UserRole.BUYER)
ANOTHER_BUYER = UserEntity(
    id=2, email='another_buyer@test.com', name='Another Buyer', role=UserRole.BUYER
)
SELLER = UserEntity(id=3, email='seller@test.com', name='Test Seller', role=UserRole.SELLER)
ADMIN = UserEntity(id=4, email='admin@test.com', name='Test Admin', role=UserRole.ADMIN)


def make_concert(**overrides: Any) -> Concert:
    fields: dict[str, Any] = {
        'id': 1,
        'name': 'Summer Nights',
        'venue': 'Riverside Arena',
        'schedule': '2026-07-01 20:00',
        'ticket_price': 1500.0,
        'capacity': 50,
    }
    fields |= overrides
    fields.setdefault('available_tickets', fields['capacity'])
    return Concert(**fields)


@pytest.fixture
def buyer() -> UserEntity:
    return BUYER


@pytest.fixture
def another_buyer() -> UserEntity:
    return ANOTHER_BUYER


@pytest.fixture
def seller() -> UserEntity:
    return SELLER


@pytest.fixture
def admin() -> UserEntity:
    return ADMIN


@pytest.fixture
def concert_factory() -> Callable[..., Concert]:
    return make_concert


# =============================================================================
# In-memory storage
# =============================================================================
@pytest.fixture
def memory_store() -> InMemoryBookingStore:
    return InMemoryBookingStore()


@pytest.fixture
def memory_uow_factory(memory_store: InMemoryBookingStore) -> Callable[[], InMemoryUnitOfWork]:
    return partial(InMemoryUnitOfWork, store=memory_store)


@pytest.fixture
def seed_concert(memory_store: InMemoryBookingStore) -> Callable[..., Concert]:
    def _seed(**overrides: Any) -> Concert:
        return memory_store.add_concert(make_concert(**overrides))

    return _seed


# =============================================================================
# Issuance
# =============================================================================
@pytest.fixture
def scratch_root(tmp_path: Path) -> Path:
    return tmp_path / 'scratch'


@pytest.fixture
def ticket_renderer(scratch_root: Path) -> QrPdfTicketRenderer:
    return QrPdfTicketRenderer(scratch_root=scratch_root)


@pytest.fixture
def console_dispatcher() -> ConsoleNotificationDispatcher:
    return ConsoleNotificationDispatcher()


@pytest.fixture
def issue_ticket_use_case(
    ticket_renderer: QrPdfTicketRenderer, console_dispatcher: ConsoleNotificationDispatcher
) -> IssueTicketUseCase:
    return IssueTicketUseCase(
        ticket_renderer=ticket_renderer,
        notification_dispatcher=console_dispatcher,
        timeout_seconds=10,
    )


@pytest.fixture
def book_use_case(
    memory_uow_factory: Callable[[], InMemoryUnitOfWork],
    issue_ticket_use_case: IssueTicketUseCase,
) -> BookTicketsUseCase:
    return BookTicketsUseCase(
        uow_factory=memory_uow_factory,
        issue_ticket_use_case=issue_ticket_use_case,
        backoff_seconds=0.001,
    )


@pytest.fixture
def cancel_use_case(memory_uow_factory: Callable[[], InMemoryUnitOfWork]) -> CancelBookingUseCase:
    return CancelBookingUseCase(uow_factory=memory_uow_factory, backoff_seconds=0.001)


# =============================================================================
# SQL storage (aiosqlite)
# =============================================================================
@pytest.fixture
async def sql_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(f'sqlite+aiosqlite:///{tmp_path / "repo_test.db"}')
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sql_session_maker(sql_engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(sql_engine, expire_on_commit=False)


@pytest.fixture
def sql_uow_factory(sql_session_maker: async_sessionmaker) -> Callable[[], SqlAlchemyUnitOfWork]:
    return partial(SqlAlchemyUnitOfWork, session_maker_factory=lambda: sql_session_maker)


@pytest.fixture
def seed_sql_concert(sql_session_maker: async_sessionmaker) -> Callable[..., Any]:
    async def _seed(**overrides: Any) -> Concert:
        concert = make_concert(**overrides)
        async with sql_session_maker() as session:
            session.add(
                ConcertModel(
                    id=concert.id,
                    name=concert.name,
                    venue=concert.venue,
                    schedule=concert.schedule,
                    ticket_price=concert.ticket_price,
                    capacity=concert.capacity,
                    available_tickets=concert.available_tickets,
                )
            )
            await session.commit()
        return concert

    return _seed


# =============================================================================
# HTTP client
# =============================================================================
@asynccontextmanager
async def lifespan_for_tests(app: FastAPI) -> AsyncIterator[None]:
    """
    Minimal lifespan for testing: no task group, so ticket issuance runs
    inline and the response already carries its final outcome.
    """
    Logger.base.info('🧪 [Test App] Starting up...')
    await create_db_and_tables()
    container.wire(modules=WIRE_MODULES)

    yield

    await dispose_engine()
    container.unwire()
    cleanup()
    Logger.base.info('🧪 [Test App] Shutdown complete')


test_app = create_app(lifespan=lifespan_for_tests, title_suffix=' (Test)')


def _sqlite_path() -> str:
    database = make_url(settings.DATABASE_URL_ASYNC).database
    assert database, 'tests expect a file based sqlite DATABASE_URL'
    return database


class SqliteSeeder:
    """Writes straight to the app's sqlite file, outside the app's event loop."""

    def __init__(self, path: str) -> None:
        self.path = path

    def _execute(self, sql: str, params: tuple = ()) -> list[tuple]:
        with closing(sqlite3.connect(self.path)) as conn, conn:
            return conn.execute(sql, params).fetchall()

    def clear(self) -> None:
        self._execute('DELETE FROM booking')
        self._execute('DELETE FROM concert')

    def add_concert(self, **overrides: Any) -> Concert:
        concert = make_concert(**overrides)
        self._execute(
            'INSERT INTO concert (id, name, venue, schedule, ticket_price, capacity, '
            'available_tickets) VALUES (?, ?, ?, ?, ?, ?, ?)',
            (
                concert.id,
                concert.name,
                concert.venue,
                concert.schedule,
                concert.ticket_price,
                concert.capacity,
                concert.available_tickets,
            ),
        )
        return concert

    def delete_concert(self, concert_id: int) -> None:
        self._execute('DELETE FROM concert WHERE id = ?', (concert_id,))

    def available_tickets(self, concert_id: int) -> int:
        rows = self._execute('SELECT available_tickets FROM concert WHERE id = ?', (concert_id,))
        return rows[0][0]

    def booking_count(self) -> int:
        return self._execute('SELECT COUNT(*) FROM booking')[0][0]


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(test_app) as test_client:
        yield test_client


@pytest.fixture
def db(client: TestClient) -> Iterator[SqliteSeeder]:
    # Tables exist once the client's lifespan has started
    seeder = SqliteSeeder(_sqlite_path())
    seeder.clear()
    yield seeder
    seeder.clear()


@pytest.fixture
def auth_headers() -> Callable[[UserEntity], dict[str, str]]:
    jwt_auth = JwtAuth()

    def _headers(user: UserEntity) -> dict[str, str]:
        return {'Authorization': f'Bearer {jwt_auth.create_jwt_token(user)}'}

    return _headers


@pytest.fixture
def login_cookie() -> Callable[[TestClient, UserEntity], None]:
    jwt_auth = JwtAuth()

    def _login(test_client: TestClient, user: UserEntity) -> None:
        test_client.cookies.set(AUTH_COOKIE_NAME, jwt_auth.create_jwt_token(user))

    return _login


@pytest.fixture
def sent_mails(client: TestClient) -> Sequence:
    dispatcher = container.notification_dispatcher()
    assert isinstance(dispatcher, ConsoleNotificationDispatcher)
    return dispatcher.sent_mails
