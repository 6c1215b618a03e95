from src.platform.exception.exceptions import (
    ConflictError,
    DomainError,
    ForbiddenError,
    InfrastructureError,
    NotFoundError,
    ServiceUnavailableError,
)


class InvalidTicketQuantityError(DomainError):
    def __init__(self, message: str = 'You can book between 1 and 3 tickets only.') -> None:
        super().__init__(message, 400)


class ConcertNotFoundError(NotFoundError):
    def __init__(self, message: str = 'Concert not found') -> None:
        super().__init__(message)


class BookingNotFoundError(NotFoundError):
    def __init__(self, message: str = 'Booking not found') -> None:
        super().__init__(message)


class InsufficientInventoryError(ConflictError):
    def __init__(self, *, available_tickets: int) -> None:
        self.available_tickets = available_tickets
        message = (
            'Not enough tickets available'
            if available_tickets <= 0
            else f'Only {available_tickets} tickets left.'
        )
        super().__init__(message)


class TicketCapExceededError(ConflictError):
    def __init__(self, *, already_booked: int, max_tickets: int) -> None:
        self.already_booked = already_booked
        self.max_tickets = max_tickets
        super().__init__(
            f'You cannot book more than {max_tickets} tickets for this concert '
            f'(already booked: {already_booked})'
        )


class NotBookingOwnerError(ForbiddenError):
    def __init__(self, message: str = 'Not authorized to access this booking') -> None:
        super().__init__(message)


class BookingWriteConflictError(ConflictError):
    """A concurrent writer changed the booking row between our read and our write"""

    def __init__(self, message: str = 'Booking was modified concurrently') -> None:
        super().__init__(message)


class ConflictRetryExhaustedError(ServiceUnavailableError):
    def __init__(self, *, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            f'Booking is busy, gave up after {attempts} attempts. Please retry shortly.'
        )


class TicketRenderError(InfrastructureError):
    def __init__(self, message: str) -> None:
        super().__init__(f'Failed to render ticket: {message}', 500)


class TicketDeliveryError(InfrastructureError):
    def __init__(self, message: str) -> None:
        super().__init__(f'Failed to deliver ticket: {message}', 502)
