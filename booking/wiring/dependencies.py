from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from fastapi import Request

from booking.application.ports.booking_ledger import BookingLedgerPort
from booking.application.ports.client_directory import ClientDirectoryPort
from booking.application.ports.notifier import NotifierPort
from booking.application.ports.payment_gateway import PaymentGatewayPort
from booking.application.ports.service_catalog import ServiceCatalogPort
from booking.application.ports.session_store import SessionStorePort
from booking.application.use_cases.availability import AvailabilityEngine
from booking.application.use_cases.booking import BookingWorkflow
from booking.application.use_cases.cancel_appointment import CancelAppointmentUseCase
from booking.application.use_cases.generate_slots import SlotGenerator
from booking.application.use_cases.sweep_reservations import ReservationSweeper
from booking.application.utils.clock import Clock, local_clock, safe_timezone
from booking.application.utils.schedule_parser import build_schedule
from booking.core.config import Settings
from booking.infrastructure.catalog.service_catalog_store import ServiceCatalogStore
from booking.infrastructure.clients.memory_directory import MemoryClientDirectory
from booking.infrastructure.ledger.json_ledger import JsonBookingLedger
from booking.infrastructure.ledger.memory_ledger import MemoryBookingLedger
from booking.infrastructure.notifications.http_notifier import HttpNotifier
from booking.infrastructure.notifications.mock_notifier import MockNotifier
from booking.infrastructure.payments.http_gateway import HttpPaymentGateway
from booking.infrastructure.payments.mock_gateway import MockPaymentGateway
from booking.infrastructure.store.memory_session_store import MemorySessionStore


@dataclass
class Container:
    settings: Settings
    clock: Clock
    catalog: ServiceCatalogPort
    ledger: BookingLedgerPort
    availability: AvailabilityEngine
    gateway: PaymentGatewayPort
    notifier: NotifierPort
    clients: ClientDirectoryPort
    sessions: SessionStorePort
    workflow: BookingWorkflow
    cancel_appointment: CancelAppointmentUseCase
    sweeper: ReservationSweeper


def build_ledger(settings: Settings, clock: Clock) -> BookingLedgerPort:
    options = dict(
        hold_minutes=settings.RESERVATION_HOLD_MINUTES,
        buffer_minutes=settings.BOOKING_BUFFER_MINUTES,
        shared_calendar=settings.SHARED_CALENDAR,
        reminder_count=len(settings.REMINDER_OFFSETS_MINUTES),
        lock_timeout_seconds=settings.LEDGER_LOCK_TIMEOUT_SECONDS,
    )
    provider = settings.LEDGER_PROVIDER.lower()
    if provider == "json":
        return JsonBookingLedger(clock, data_path=settings.LEDGER_DATA_PATH, **options)
    if provider != "memory":
        raise ValueError(f"Unknown LEDGER_PROVIDER '{settings.LEDGER_PROVIDER}', expected memory or json")
    return MemoryBookingLedger(clock, **options)


def build_gateway(settings: Settings) -> PaymentGatewayPort:
    logger = logging.getLogger(__name__)
    if not settings.PAYMENT_GATEWAY_URL:
        if settings.ENV.lower() in {"dev", "local", "test"}:
            logger.info("Using MockPaymentGateway (PAYMENT_GATEWAY_URL missing)")
            return MockPaymentGateway()
        raise ValueError("PAYMENT_GATEWAY_URL is required outside dev/local.")
    return HttpPaymentGateway(settings.PAYMENT_GATEWAY_URL, api_key=settings.PAYMENT_GATEWAY_API_KEY)


def build_notifier(settings: Settings) -> NotifierPort:
    logger = logging.getLogger(__name__)
    if not settings.NOTIFIER_URL:
        logger.info("Using MockNotifier (NOTIFIER_URL missing)")
        return MockNotifier()
    return HttpNotifier(
        settings.NOTIFIER_URL,
        from_email=settings.NOTIFIER_FROM_EMAIL,
        from_name=settings.BUSINESS_NAME,
        api_key=settings.NOTIFIER_API_KEY,
    )


def build_container(
    settings: Settings,
    clock: Clock | None = None,
    gateway: PaymentGatewayPort | None = None,
    notifier: NotifierPort | None = None,
) -> Container:
    clock = clock or local_clock(safe_timezone(settings.BUSINESS_TIMEZONE))
    schedule = build_schedule(settings.WORKING_DAYS, settings.WORKING_PERIODS, settings.CLOSED_DATES)
    catalog = ServiceCatalogStore()
    ledger = build_ledger(settings, clock)
    availability = AvailabilityEngine(
        generator=SlotGenerator(schedule, clock, increment_minutes=settings.SLOT_INCREMENT_MINUTES),
        ledger=ledger,
        clock=clock,
        buffer_minutes=settings.BOOKING_BUFFER_MINUTES,
        shared_calendar=settings.SHARED_CALENDAR,
        horizon_days=settings.AVAILABILITY_HORIZON_DAYS,
    )
    gateway = gateway or build_gateway(settings)
    notifier = notifier or build_notifier(settings)
    clients = MemoryClientDirectory()
    workflow = BookingWorkflow(
        catalog=catalog,
        availability=availability,
        ledger=ledger,
        gateway=gateway,
        clients=clients,
        notifier=notifier,
        clock=clock,
        deposit_percentage=settings.DEPOSIT_PERCENTAGE,
        currency=settings.CURRENCY,
        checkout_timeout_minutes=settings.CHECKOUT_TIMEOUT_MINUTES,
        reminder_offsets=[timedelta(minutes=m) for m in settings.REMINDER_OFFSETS_MINUTES],
        phone_pattern=settings.PHONE_PATTERN,
    )
    return Container(
        settings=settings,
        clock=clock,
        catalog=catalog,
        ledger=ledger,
        availability=availability,
        gateway=gateway,
        notifier=notifier,
        clients=clients,
        sessions=MemorySessionStore(),
        workflow=workflow,
        cancel_appointment=CancelAppointmentUseCase(ledger, catalog, clients, notifier, gateway),
        sweeper=ReservationSweeper(ledger, interval_seconds=settings.SWEEP_INTERVAL_SECONDS),
    )


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_catalog(request: Request) -> ServiceCatalogPort:
    return get_container(request).catalog


def get_ledger(request: Request) -> BookingLedgerPort:
    return get_container(request).ledger


def get_availability(request: Request) -> AvailabilityEngine:
    return get_container(request).availability


def get_workflow(request: Request) -> BookingWorkflow:
    return get_container(request).workflow


def get_sessions(request: Request) -> SessionStorePort:
    return get_container(request).sessions


def get_cancel_use_case(request: Request) -> CancelAppointmentUseCase:
    return get_container(request).cancel_appointment
