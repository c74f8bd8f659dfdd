from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

import httpx

from booking.application.exceptions import NotificationFailed
from booking.application.ports.notifier import NotifierPort
from booking.domain.entities.appointment import Appointment
from booking.domain.entities.client import Client
from booking.domain.entities.service import Service


class HttpNotifier(NotifierPort):
    def __init__(
        self,
        base_url: str,
        from_email: str,
        from_name: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("NOTIFIER_URL is required for the HTTP notifier")
        self._base_url = base_url.rstrip("/")
        self._from_email = from_email
        self._from_name = from_name
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = client or httpx.Client(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def send_confirmation(self, appointment: Appointment, client: Client, service: Service) -> None:
        self._post(
            "/notifications/email",
            {
                "template": "confirmation",
                "to": client.email,
                "from": self._from_email,
                "fromName": self._from_name,
                "context": self._context(appointment, client, service),
            },
            appointment,
        )

    def schedule_reminders(self, appointment: Appointment, offsets: list[timedelta]) -> None:
        for index, offset in enumerate(offsets):
            self._post(
                "/notifications/schedule",
                {
                    "appointmentId": appointment.id,
                    "reminderIndex": index,
                    "reminderDate": (appointment.start - offset).isoformat(),
                },
                appointment,
            )

    def send_cancellation(
        self,
        appointment: Appointment,
        client: Client,
        service: Service,
        reason: str | None = None,
    ) -> None:
        context = self._context(appointment, client, service)
        context["reason"] = reason
        self._post(
            "/notifications/email",
            {
                "template": "cancellation",
                "to": client.email,
                "from": self._from_email,
                "fromName": self._from_name,
                "context": context,
            },
            appointment,
        )

    def _context(self, appointment: Appointment, client: Client, service: Service) -> dict[str, Any]:
        return {
            "appointmentId": appointment.id,
            "firstName": client.first_name,
            "serviceName": service.name,
            "date": appointment.date.isoformat(),
            "startTime": appointment.start_time.strftime("%H:%M"),
            "durationMinutes": service.duration_minutes,
            "price": service.price,
        }

    def _post(self, path: str, payload: dict[str, Any], appointment: Appointment) -> None:
        try:
            response = self._client.post(f"{self._base_url}{path}", json=payload, headers=self._headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            self._logger.error(
                "Notification request failed",
                extra={"appointment_id": appointment.id, "error": str(e)},
            )
            raise NotificationFailed(f"Notification to {path} failed") from e
