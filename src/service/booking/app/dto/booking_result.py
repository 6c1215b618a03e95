"""Reservation and issuance outcome DTOs."""

from enum import StrEnum
from typing import Optional

import attrs

from src.service.booking.app.dto.booking_snapshot import BookingSnapshot


@attrs.define(frozen=True)
class LedgerResult:
    """
    Outcome of a conditional inventory debit.

    A rejected debit is a normal business outcome, not an error:
    available_tickets is the count observed when the debit was refused.
    """

    accepted: bool
    available_tickets: int


class IssuanceStatus(StrEnum):
    SCHEDULED = 'scheduled'
    DELIVERED = 'delivered'
    RENDER_FAILED = 'render_failed'
    DELIVERY_FAILED = 'delivery_failed'
    SKIPPED = 'skipped'


@attrs.define(frozen=True)
class IssuanceOutcome:
    status: IssuanceStatus
    detail: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status in (IssuanceStatus.DELIVERED, IssuanceStatus.SCHEDULED)


@attrs.define(frozen=True)
class BookingResult:
    snapshot: BookingSnapshot
    issuance: IssuanceOutcome
