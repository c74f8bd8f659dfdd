from __future__ import annotations

import logging
from typing import Any

import httpx

from booking.application.exceptions import PaymentFailed
from booking.application.ports.payment_gateway import PaymentGatewayPort
from booking.domain.entities.payment import Charge, ChargeOutcome, MethodDetails


class HttpPaymentGateway(PaymentGatewayPort):
    """Talks to the payments backend; only success/failure of each call is interpreted."""

    def __init__(self, base_url: str, api_key: str | None = None, timeout: float = 10.0, client: httpx.Client | None = None) -> None:
        if not base_url:
            raise ValueError("PAYMENT_GATEWAY_URL is required for the HTTP payment gateway")
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = client or httpx.Client(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def create_charge(self, amount_minor: int, currency: str, metadata: dict[str, Any] | None = None) -> Charge:
        payload = {"amount": amount_minor, "currency": currency, "metadata": dict(metadata or {})}
        try:
            response = self._client.post(f"{self._base_url}/payments/create-intent", json=payload, headers=self._headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            self._logger.error("Error creating charge", extra={"error": str(e)})
            raise PaymentFailed("Payment provider unavailable") from e

        data = _json_object(response)
        if data is None:
            self._logger.error("Charge response is not a JSON object", extra={"error": response.text[:200]})
            raise PaymentFailed("Payment provider returned an invalid charge")
        charge_id = data.get("id")
        handle = data.get("clientSecret") or data.get("client_secret")
        if not charge_id or not handle:
            self._logger.error("Charge response missing fields", extra={"error": str(sorted(data))})
            raise PaymentFailed("Payment provider returned an invalid charge")
        return Charge(charge_id=str(charge_id), handle=str(handle))

    def confirm_charge(self, handle: str, method_details: MethodDetails) -> ChargeOutcome:
        payload = {
            "clientSecret": handle,
            "paymentMethod": method_details.payload,
            "method": method_details.method.value,
            "receiptEmail": method_details.receipt_email,
        }
        try:
            response = self._client.post(f"{self._base_url}/payments/confirm", json=payload, headers=self._headers)
        except httpx.HTTPError as e:
            self._logger.error("Error confirming charge", extra={"error": str(e)})
            return ChargeOutcome(success=False, error="Payment failed")

        if response.status_code >= 400:
            error = (_json_object(response) or {}).get("error")
            error_message = error.get("message") if isinstance(error, dict) else None
            self._logger.error(
                "Charge declined",
                extra={"error": error_message or response.text, "reason": response.status_code},
            )
            return ChargeOutcome(success=False, error=error_message or "Payment failed")

        data = _json_object(response)
        if data is None:
            self._logger.error("Confirm response is not a JSON object", extra={"error": response.text[:200]})
            return ChargeOutcome(success=False, error="Payment failed")
        if data.get("success", True):
            return ChargeOutcome(success=True)
        return ChargeOutcome(success=False, error=data.get("error") or "Payment failed")

    def refund_charge(self, charge_id: str, amount_minor: int | None = None) -> bool:
        payload: dict[str, Any] = {"paymentIntentId": charge_id}
        if amount_minor is not None:
            payload["amount"] = amount_minor
        try:
            response = self._client.post(f"{self._base_url}/payments/refund", json=payload, headers=self._headers)
            return response.is_success
        except httpx.HTTPError as e:
            self._logger.error("Error processing refund", extra={"error": str(e)})
            return False


def _json_object(response: httpx.Response) -> dict[str, Any] | None:
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None
