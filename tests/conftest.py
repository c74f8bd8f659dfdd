from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from booking.application.use_cases.availability import AvailabilityEngine
from booking.application.use_cases.booking import BookingWorkflow
from booking.application.use_cases.generate_slots import SlotGenerator
from booking.application.utils.schedule_parser import build_schedule
from booking.domain.entities.client import Client
from booking.domain.entities.service import Service
from booking.infrastructure.catalog.service_catalog_store import ServiceCatalogStore
from booking.infrastructure.clients.memory_directory import MemoryClientDirectory
from booking.infrastructure.ledger.memory_ledger import MemoryBookingLedger
from booking.infrastructure.notifications.mock_notifier import MockNotifier
from booking.infrastructure.payments.mock_gateway import MockPaymentGateway

# Monday 2 March 2026, 08:00 local time.
NOW = datetime(2026, 3, 2, 8, 0)


class FakeClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: int) -> None:
        self.now += timedelta(minutes=minutes)


def make_service(service_id: str = "svc", duration: int = 30, price: float = 50, **kwargs) -> Service:
    return Service(
        id=service_id,
        name=kwargs.pop("name", f"Service {service_id}"),
        category=kwargs.pop("category", "General"),
        description=kwargs.pop("description", ""),
        duration_minutes=duration,
        price=price,
        **kwargs,
    )


def make_client(**overrides) -> Client:
    data = {
        "first_name": "Camille",
        "last_name": "Martin",
        "email": "camille.martin@example.com",
        "phone": "06 12 34 56 78",
    }
    data.update(overrides)
    return Client(**data)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def schedule():
    return build_schedule([0, 1, 2, 3, 4], ["morning=09:00-12:00", "afternoon=14:00-18:00"])


@pytest.fixture
def catalog() -> ServiceCatalogStore:
    return ServiceCatalogStore()


@pytest.fixture
def ledger(clock) -> MemoryBookingLedger:
    return MemoryBookingLedger(clock, hold_minutes=15, buffer_minutes=15)


@pytest.fixture
def engine(schedule, clock, ledger) -> AvailabilityEngine:
    return AvailabilityEngine(SlotGenerator(schedule, clock, increment_minutes=15), ledger, clock, buffer_minutes=15)


@pytest.fixture
def gateway() -> MockPaymentGateway:
    return MockPaymentGateway()


@pytest.fixture
def notifier() -> MockNotifier:
    return MockNotifier()


@pytest.fixture
def clients() -> MemoryClientDirectory:
    return MemoryClientDirectory()


@pytest.fixture
def workflow(catalog, engine, ledger, gateway, clients, notifier, clock) -> BookingWorkflow:
    return BookingWorkflow(
        catalog=catalog,
        availability=engine,
        ledger=ledger,
        gateway=gateway,
        clients=clients,
        notifier=notifier,
        clock=clock,
        deposit_percentage=30,
        checkout_timeout_minutes=10,
        reminder_offsets=[timedelta(days=2), timedelta(hours=2)],
    )
