from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from booking.domain.entities.appointment import PaymentMethod, PaymentStatus


class PaymentOption(str, Enum):
    FULL = "full"
    DEPOSIT = "deposit"
    ONSITE = "onsite"


@dataclass(frozen=True)
class PaymentQuote:
    option: PaymentOption
    total: float
    due_now: float
    remainder: float


@dataclass(frozen=True)
class PaymentResult:
    """What the ledger records on confirm."""

    status: PaymentStatus
    amount: float
    method: PaymentMethod | None = None
    charge_id: str | None = None


@dataclass(frozen=True)
class Charge:
    charge_id: str
    handle: str


@dataclass(frozen=True)
class ChargeOutcome:
    success: bool
    error: str | None = None


@dataclass(frozen=True)
class MethodDetails:
    method: PaymentMethod = PaymentMethod.CARD
    payload: dict[str, Any] = field(default_factory=dict)
    receipt_email: str | None = None
