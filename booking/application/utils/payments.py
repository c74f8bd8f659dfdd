from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from booking.domain.entities.appointment import PaymentMethod, PaymentStatus
from booking.domain.entities.payment import PaymentOption, PaymentQuote, PaymentResult


def round_half_up(value: Decimal | float, places: int = 0) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def deposit_amount(total: float, percentage: float) -> float:
    """Deposit rounded to whole currency units, half up: 150 at 30% -> 45."""
    return float(round_half_up(Decimal(str(total)) * Decimal(str(percentage)) / 100))


def quote(total: float, option: PaymentOption, deposit_percentage: float) -> PaymentQuote:
    if option is PaymentOption.DEPOSIT:
        due_now = deposit_amount(total, deposit_percentage)
    elif option is PaymentOption.FULL:
        due_now = float(total)
    else:
        due_now = 0.0
    remainder = float(Decimal(str(total)) - Decimal(str(due_now)))
    return PaymentQuote(option=option, total=float(total), due_now=due_now, remainder=remainder)


def to_minor_units(amount: float) -> int:
    return int(round_half_up(Decimal(str(amount)) * 100))


def payment_result_for(payment_quote: PaymentQuote, charge_id: str | None = None) -> PaymentResult:
    """Translate a settled quote into what gets recorded on the appointment."""
    if payment_quote.total == 0:
        return PaymentResult(status=PaymentStatus.PAID, amount=0.0)
    if payment_quote.option is PaymentOption.ONSITE:
        return PaymentResult(status=PaymentStatus.PENDING, amount=0.0, method=PaymentMethod.CASH)
    status = PaymentStatus.PARTIAL if payment_quote.remainder > 0 else PaymentStatus.PAID
    return PaymentResult(
        status=status,
        amount=payment_quote.due_now,
        method=PaymentMethod.CARD,
        charge_id=charge_id,
    )
