from contextvars import ContextVar
from datetime import datetime, timezone
from enum import StrEnum
import logging
import os
import sys
from typing import TYPE_CHECKING

from loguru import logger as loguru_logger


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.config.core_setting import settings
from src.platform.constant.path import LOG_DIR
from src.platform.logging.service_context import get_service_context


LOG_DIR = os.environ.get('TEST_LOG_DIR', str(LOG_DIR))

# Keyword arguments whose values never reach the log output
SENSITIVE_KEYWORDS = {
    'password',
    'token',
    'secret',
    'signing_key',
    'smtp_password',
}

chain_start_time_var: ContextVar[float] = ContextVar('chain_start_time_var', default=0)
call_depth_var: ContextVar[int] = ContextVar('call_depth_var', default=0)


class ExtraField(StrEnum):
    SERVICE_CONTEXT = 'service_context'
    CHAIN_START_TIME = 'chain_start_time'
    CALL_TARGET = 'call_target'


_DEFAULT_EXTRA = {
    ExtraField.SERVICE_CONTEXT: get_service_context(),
    ExtraField.CHAIN_START_TIME: '',
    ExtraField.CALL_TARGET: '',
}

# Noisy third-party loggers that only matter when debugging them directly
_QUIET_LOGGER_PREFIXES = ('aiosqlite', 'asyncio', 'PIL', 'multipart')


class InterceptHandler(logging.Handler):
    """Route stdlib ``logging`` records (uvicorn, sqlalchemy, aiosmtplib) into loguru"""

    def __init__(self, bound_logger: 'LoguruLogger') -> None:
        super().__init__()
        self._bound_logger = bound_logger

    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno <= logging.DEBUG and record.name.startswith(_QUIET_LOGGER_PREFIXES):
            return

        try:
            level: str | int = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        self._bound_logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


io_log_format = ' | '.join(
    (
        f'<c>{{extra[{ExtraField.SERVICE_CONTEXT}]}}</>',
        '<lvl>{level:<8}</>',
        f'<c>{{file}}::{{function}}:{{line}}</>=><y>{{extra[{ExtraField.CALL_TARGET}]}}</>',
        '{message}',
        '<lk>{elapsed}</>',
        f'<lk>{{extra[{ExtraField.CHAIN_START_TIME}]:<18}}</>',
    )
)


loguru_logger.remove()
custom_logger = loguru_logger.bind(**_DEFAULT_EXTRA)

min_log_level = 'DEBUG' if settings.DEBUG else 'INFO'

custom_logger.add(sys.stdout, format=io_log_format, level=min_log_level, enqueue=True)

# File output in DEBUG mode only; production ships stdout to the log collector
if settings.DEBUG:
    hour_stamp = datetime.now(timezone.utc).strftime('%Y-%m-%d_%H')
    log_prefix = 'test_' if os.environ.get('TEST_LOG_DIR') else ''
    custom_logger.add(
        f'{LOG_DIR}/{log_prefix}{hour_stamp}.log',
        format=io_log_format,
        rotation='1 hour',
        retention='7 days',
        compression='gz',
        enqueue=True,
        level=min_log_level,
    )

logging.basicConfig(handlers=[InterceptHandler(custom_logger)], level=0, force=True)
