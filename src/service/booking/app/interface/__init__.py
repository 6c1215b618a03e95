"""Application layer interfaces (Ports)"""

from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.app.interface.i_concert_query_repo import IConcertQueryRepo
from src.service.booking.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.booking.app.interface.i_notification_dispatcher import INotificationDispatcher
from src.service.booking.app.interface.i_ticket_renderer import ITicketRenderer


__all__ = [
    'IBookingCommandRepo',
    'IBookingQueryRepo',
    'IConcertQueryRepo',
    'IInventoryLedger',
    'INotificationDispatcher',
    'ITicketRenderer',
]
