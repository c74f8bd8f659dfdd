from __future__ import annotations

import logging
from typing import Any

from booking.application.exceptions import PaymentFailed
from booking.application.ports.payment_gateway import PaymentGatewayPort
from booking.domain.entities.payment import Charge, ChargeOutcome, MethodDetails


class MockPaymentGateway(PaymentGatewayPort):
    """
    Deterministic gateway for local runs and tests.
    Pass decline_reason to make every confirm_charge fail with that message.
    """

    def __init__(self, decline_reason: str | None = None, unreachable: bool = False) -> None:
        self._charges: dict[str, dict[str, Any]] = {}
        self._decline_reason = decline_reason
        self._unreachable = unreachable
        self.refunds: list[tuple[str, int | None]] = []
        self._logger = logging.getLogger(__name__)

    def create_charge(self, amount_minor: int, currency: str, metadata: dict[str, Any] | None = None) -> Charge:
        if self._unreachable:
            raise PaymentFailed("Payment provider unreachable")
        charge_id = f"mock_charge_{len(self._charges) + 1}"
        self._charges[charge_id] = {
            "amount": amount_minor,
            "currency": currency,
            "metadata": dict(metadata or {}),
            "status": "requires_confirmation",
        }
        self._logger.info("Mock charge created", extra={"reason": charge_id})
        return Charge(charge_id=charge_id, handle=f"{charge_id}_secret")

    def confirm_charge(self, handle: str, method_details: MethodDetails) -> ChargeOutcome:
        charge_id = handle.removesuffix("_secret")
        charge = self._charges.get(charge_id)
        if charge is None:
            return ChargeOutcome(success=False, error="Unknown charge")
        if self._decline_reason:
            charge["status"] = "declined"
            return ChargeOutcome(success=False, error=self._decline_reason)
        charge["status"] = "succeeded"
        return ChargeOutcome(success=True)

    def refund_charge(self, charge_id: str, amount_minor: int | None = None) -> bool:
        charge = self._charges.get(charge_id)
        if charge is None or charge["status"] != "succeeded":
            return False
        charge["status"] = "refunded"
        self.refunds.append((charge_id, amount_minor))
        return True

    def charge(self, charge_id: str) -> dict[str, Any] | None:
        return self._charges.get(charge_id)
