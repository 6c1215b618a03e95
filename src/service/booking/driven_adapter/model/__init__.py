from src.service.booking.driven_adapter.model.booking_model import BookingModel
from src.service.booking.driven_adapter.model.concert_model import ConcertModel


__all__ = ['BookingModel', 'ConcertModel']
