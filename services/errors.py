class BookingError(Exception):
    """Base for failures surfaced to the caller as ``{"error": ...}``."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    status_code = 400


class NotFound(BookingError):
    status_code = 404


class NotBookable(BookingError):
    status_code = 409


class InsufficientInventory(BookingError):
    status_code = 409


class InvalidTransition(BookingError):
    status_code = 409


class ExternalServiceError(BookingError):
    """Marketplace or notification channel failure. Logged, never returned to the caller."""

    status_code = 502
