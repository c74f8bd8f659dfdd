from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from booking.domain.entities.payment import Charge, ChargeOutcome, MethodDetails


class PaymentGatewayPort(ABC):
    @abstractmethod
    def create_charge(self, amount_minor: int, currency: str, metadata: dict[str, Any] | None = None) -> Charge:
        """Create a charge for an amount in minor currency units. Raises PaymentFailed."""
        raise NotImplementedError

    @abstractmethod
    def confirm_charge(self, handle: str, method_details: MethodDetails) -> ChargeOutcome:
        raise NotImplementedError

    @abstractmethod
    def refund_charge(self, charge_id: str, amount_minor: int | None = None) -> bool:
        """Refund a charge, fully when amount_minor is None. Returns True on success."""
        raise NotImplementedError
