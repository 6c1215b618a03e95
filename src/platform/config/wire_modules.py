"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.booking.app.command import book_tickets_use_case, cancel_booking_use_case
from src.service.booking.app.query import (
    get_booking_use_case,
    list_bookings_use_case,
    materialize_ticket_use_case,
)
from src.service.booking.driving_adapter.http_controller.auth import role_auth


WIRE_MODULES: list[ModuleType] = [
    book_tickets_use_case,
    cancel_booking_use_case,
    get_booking_use_case,
    list_bookings_use_case,
    materialize_ticket_use_case,
    role_auth,
]
