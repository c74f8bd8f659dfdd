from fastapi import Request
from fastapi.responses import JSONResponse

from booking.application.exceptions import BookingError

STATUS_BY_KIND: dict[str, int] = {
    "validation": 422,
    "conflict": 409,
    "expired": 410,
    "not_found": 404,
    "payment_failed": 402,
    "invalid_transition": 409,
    "unavailable": 503,
    "timeout": 408,
    "notification_failed": 502,
}


def status_for(error: BookingError) -> int:
    return STATUS_BY_KIND.get(error.kind, 400)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    body = {"error": exc.kind, "detail": str(exc)}
    field_errors = getattr(exc, "field_errors", None)
    if field_errors:
        body["field_errors"] = field_errors
    return JSONResponse(status_code=status_for(exc), content=body)
