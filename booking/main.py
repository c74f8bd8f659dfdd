import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from booking.api.v1.appointments import router as appointments_router
from booking.api.v1.bookings import router as bookings_router
from booking.api.v1.errors import booking_error_handler
from booking.api.v1.reservations import router as reservations_router
from booking.api.v1.services import router as services_router
from booking.application.exceptions import BookingError
from booking.core.config import Settings, settings
from booking.wiring.dependencies import Container, build_container


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in (
            "session_id",
            "appointment_id",
            "service_id",
            "client_id",
            "token",
            "slot",
            "count",
            "reason",
            "error",
        ):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


def configure_logging(level: str) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)


def create_app(app_settings: Settings | None = None, container: Container | None = None) -> FastAPI:
    app_settings = app_settings or settings
    container = container or build_container(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container.sweeper.start()
        try:
            yield
        finally:
            container.sweeper.stop()

    app = FastAPI(title=f"{app_settings.BUSINESS_NAME} Booking", version="1.0.0", lifespan=lifespan)
    app.state.container = container
    app.add_exception_handler(BookingError, booking_error_handler)

    app.include_router(services_router, prefix="/api/v1", tags=["services"])
    app.include_router(reservations_router, prefix="/api/v1", tags=["reservations"])
    app.include_router(appointments_router, prefix="/api/v1", tags=["appointments"])
    app.include_router(bookings_router, prefix="/api/v1", tags=["bookings"])

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


configure_logging(settings.LOG_LEVEL)

app = create_app()
