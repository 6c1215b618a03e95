from pathlib import Path
from typing import List, Literal, Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Concert Booking'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # Security (tokens are issued by the auth service, we only decode them)
    SECRET_KEY: SecretStr = SecretStr('test_secret_key_change_in_production')
    ALGORITHM: str = 'HS256'

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # Storage backend: 'sql' (SQLAlchemy) or 'memory' (single process, dev/tests)
    STORAGE_BACKEND: Literal['sql', 'memory'] = 'sql'

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'concert_booking'
    POSTGRES_PORT: str = '5432'

    # Full URL override, e.g. sqlite+aiosqlite:///./concert_booking.db
    DATABASE_URL: str = ''

    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_POOL_PRE_PING: bool = True

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:'
            f'{self.POSTGRES_PASSWORD.get_secret_value()}@'
            f'{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Reservation engine
    BOOKING_CONFLICT_MAX_RETRIES: int = 3
    BOOKING_CONFLICT_BACKOFF_SECONDS: float = 0.05

    # Ticket artifacts
    TICKET_SCRATCH_DIR: str = ''  # empty -> system temp dir
    TICKET_QR_SIGNING_KEY: Optional[SecretStr] = None
    TICKET_ISSUANCE_TIMEOUT_SECONDS: float = 30.0
    ISSUANCE_SHUTDOWN_GRACE_SECONDS: float = 10.0  # wait for in-flight tickets before cancelling

    # Mail
    MAIL_BACKEND: Literal['smtp', 'console'] = 'console'
    MAIL_SENDER: str = '"Concert Tickets" <no-reply@concerts.com>'
    MAIL_TIMEOUT_SECONDS: float = 10.0
    SMTP_HOST: str = 'localhost'
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ''
    SMTP_PASSWORD: SecretStr = SecretStr('')
    SMTP_START_TLS: bool = True


settings = Settings()  # type: ignore
