from datetime import datetime
import uuid

from sqlalchemy import CheckConstraint, DateTime, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base


class BookingModel(Base):
    __tablename__ = 'booking'
    __table_args__ = (
        UniqueConstraint('user_id', 'concert_id', name='uq_booking_user_concert'),
        CheckConstraint(
            'tickets_booked >= 1 AND tickets_booked <= 3', name='ck_booking_tickets_range'
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)  # UUID7
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    concert_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    tickets_booked: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
