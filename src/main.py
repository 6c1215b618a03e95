"""
Production FastAPI Application

Booking API plus the background task group that issues tickets after a
booking commits.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import cleanup, container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.orm_db_setting import create_db_and_tables, dispose_engine
from src.platform.logging.loguru_io import Logger


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Booking Service] Starting up...')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Booking Service] Dependency injection wired')

    if settings.STORAGE_BACKEND == 'sql':
        await create_db_and_tables()
        Logger.base.info('🗄️  [Booking Service] Database schema ready')
    else:
        Logger.base.warning('🧪 [Booking Service] In-memory storage, data is not persisted')

    async with anyio.create_task_group() as tg:
        # Ticket issuance runs here so the booking response does not wait for SMTP
        container.task_group.override(tg)
        Logger.base.info('✅ [Booking Service] Ready to serve requests')

        yield

        Logger.base.info('🛑 [Booking Service] Shutting down...')
        container.task_group.reset_override()

        dropped = await container.issue_ticket_use_case().wait_until_idle(
            timeout=settings.ISSUANCE_SHUTDOWN_GRACE_SECONDS
        )
        if dropped:
            Logger.base.warning(
                f'⚠️ [Booking Service] Cancelling {dropped} unfinished ticket issuance task(s); '
                'their tickets stay downloadable'
            )
        tg.cancel_scope.cancel()

    if settings.STORAGE_BACKEND == 'sql':
        await dispose_engine()
        Logger.base.info('🗄️  [Booking Service] Database engine disposed')

    container.unwire()
    cleanup()
    Logger.base.info('👋 [Booking Service] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
