"""Application layer DTOs"""

from src.service.booking.app.dto.booking_result import (
    BookingResult,
    IssuanceOutcome,
    IssuanceStatus,
    LedgerResult,
)
from src.service.booking.app.dto.booking_snapshot import BookingSnapshot
from src.service.booking.app.dto.ticket_artifact import MailAttachment, TicketArtifact


__all__ = [
    'BookingResult',
    'BookingSnapshot',
    'IssuanceOutcome',
    'IssuanceStatus',
    'LedgerResult',
    'MailAttachment',
    'TicketArtifact',
]
