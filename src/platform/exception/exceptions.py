class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class ForbiddenError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class InfrastructureError(CustomBaseError):
    """Failure of an external collaborator (renderer, mail server, ...)"""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message, status_code)


class ServiceUnavailableError(CustomBaseError):
    """Transient failure; the caller may safely retry"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 503)
