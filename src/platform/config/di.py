"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from functools import partial

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.constant.path import TICKET_SCRATCH_ROOT
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork, UnitOfWorkFactory
from src.service.booking.app.command.issue_ticket_use_case import IssueTicketUseCase
from src.service.booking.app.interface.i_notification_dispatcher import INotificationDispatcher
from src.service.booking.driven_adapter.artifact.qr_pdf_ticket_renderer import (
    QrPdfTicketRenderer,
)
from src.service.booking.driven_adapter.memory.in_memory_booking_store import (
    InMemoryBookingStore,
)
from src.service.booking.driven_adapter.memory.in_memory_unit_of_work import InMemoryUnitOfWork
from src.service.booking.driven_adapter.notification.console_notification_dispatcher import (
    ConsoleNotificationDispatcher,
)
from src.service.booking.driven_adapter.notification.smtp_notification_dispatcher import (
    SmtpNotificationDispatcher,
)
from src.service.booking.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


def build_unit_of_work_factory(
    *, backend: str, memory_store: InMemoryBookingStore
) -> UnitOfWorkFactory:
    if backend == 'memory':
        return partial(InMemoryUnitOfWork, store=memory_store)
    return SqlAlchemyUnitOfWork


def build_notification_dispatcher(*, settings: Settings) -> INotificationDispatcher:
    if settings.MAIL_BACKEND == 'smtp':
        return SmtpNotificationDispatcher(
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            sender=settings.MAIL_SENDER,
            timeout=settings.MAIL_TIMEOUT_SECONDS,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD.get_secret_value(),
            start_tls=settings.SMTP_START_TLS,
        )
    return ConsoleNotificationDispatcher()


def build_ticket_renderer(*, settings: Settings) -> QrPdfTicketRenderer:
    signing_key = settings.TICKET_QR_SIGNING_KEY
    return QrPdfTicketRenderer(
        scratch_root=TICKET_SCRATCH_ROOT,
        signing_key=signing_key.get_secret_value() if signing_key else None,
    )


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Background task group (set by main.py lifespan)
    # Used for fire-and-forget ticket issuance after a booking commits
    task_group = providers.Object(None)

    # Storage: SQLAlchemy by default, in-process store for STORAGE_BACKEND=memory
    memory_store = providers.Singleton(InMemoryBookingStore)
    unit_of_work_factory = providers.Singleton(
        build_unit_of_work_factory,
        backend=config_service.provided.STORAGE_BACKEND,
        memory_store=memory_store,
    )

    # Auth service
    jwt_auth = providers.Singleton(JwtAuth)

    # Ticket issuance
    ticket_renderer = providers.Singleton(build_ticket_renderer, settings=config_service)
    notification_dispatcher = providers.Singleton(
        build_notification_dispatcher, settings=config_service
    )
    issue_ticket_use_case = providers.Singleton(
        IssueTicketUseCase,
        ticket_renderer=ticket_renderer,
        notification_dispatcher=notification_dispatcher,
        timeout_seconds=config_service.provided.TICKET_ISSUANCE_TIMEOUT_SECONDS,
    )


container = Container()


def cleanup() -> None:
    container.reset_singletons()
