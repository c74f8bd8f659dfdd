class BookingError(RuntimeError):
    """Base class for every error the booking core reports to its callers."""

    kind = "booking_error"


class ValidationError(BookingError):
    """Raised when client-supplied data is malformed. Recovered by re-prompting."""

    kind = "validation"

    def __init__(self, message: str, field_errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.field_errors = dict(field_errors or {})


class SlotConflict(BookingError):
    """Raised when a slot is already taken or a token is unknown/finalized."""

    kind = "conflict"


class ReservationExpired(BookingError):
    """Raised when a reservation hold lapsed before confirmation."""

    kind = "expired"


class NotFound(BookingError):
    """Raised for unknown service, appointment, client or session ids."""

    kind = "not_found"


class InvalidTransition(BookingError):
    """Raised when an appointment cannot move to the requested status."""

    kind = "invalid_transition"


class PaymentFailed(BookingError):
    """Raised when the payment gateway declines or cannot be reached."""

    kind = "payment_failed"


class NotificationFailed(BookingError):
    """Raised by notifiers. Never rolls back a confirmed booking."""

    kind = "notification_failed"


class CheckoutTimeout(BookingError):
    """Raised when a booking session held its slot past the checkout deadline."""

    kind = "timeout"


class LedgerUnavailable(BookingError):
    """Raised when the ledger cannot serve a request within its time bound."""

    kind = "unavailable"
