from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum

from booking.domain.entities.client import Client
from booking.domain.entities.payment import PaymentOption
from booking.domain.entities.reservation import ReservationToken
from booking.domain.entities.time_slot import TimeSlot


class WorkflowStage(IntEnum):
    SERVICE = 1
    SLOT = 2
    CLIENT = 3
    PAYMENT = 4
    COMPLETED = 5


@dataclass(frozen=True)
class BookingSelections:
    service_id: str | None = None
    slot: TimeSlot | None = None
    client: Client | None = None
    consent_accepted: bool = False
    payment_option: PaymentOption | None = None


@dataclass(frozen=True)
class BookingState:
    session_id: str
    stage: WorkflowStage = WorkflowStage.SERVICE
    selections: BookingSelections = BookingSelections()
    reservation: ReservationToken | None = None
    checkout_started_at: datetime | None = None  # set when the slot is reserved
    appointment_id: str | None = None
    unavailable_slot_ids: frozenset[str] = field(default_factory=frozenset)
    updated_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.stage is WorkflowStage.COMPLETED
