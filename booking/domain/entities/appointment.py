from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CARD = "card"
    CASH = "cash"
    TRANSFER = "transfer"


ACTIVE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})


@dataclass(frozen=True)
class Appointment:
    id: str
    service_id: str
    date: date
    start_time: time
    end_time: time
    created_at: datetime
    updated_at: datetime
    status: AppointmentStatus = AppointmentStatus.PENDING
    client_id: str | None = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_amount: float = 0.0
    payment_method: PaymentMethod | None = None
    charge_id: str | None = None
    reminders_sent: tuple[bool, ...] = field(default_factory=tuple)
    notes: str | None = None
    cancellation_reason: str | None = None

    @property
    def start(self) -> datetime:
        return datetime.combine(self.date, self.start_time)

    @property
    def end(self) -> datetime:
        return datetime.combine(self.date, self.end_time)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
