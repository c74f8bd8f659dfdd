from __future__ import annotations

import logging
from datetime import datetime, timedelta

from booking.application.exceptions import NotificationFailed
from booking.application.ports.notifier import NotifierPort
from booking.domain.entities.appointment import Appointment
from booking.domain.entities.client import Client
from booking.domain.entities.service import Service


class MockNotifier(NotifierPort):
    """Logs instead of sending and keeps what it would have sent for inspection."""

    def __init__(self, fail: bool = False) -> None:
        self._fail = fail
        self.confirmations: list[tuple[str, str]] = []
        self.reminders: list[tuple[str, datetime]] = []
        self.cancellations: list[tuple[str, str | None]] = []
        self._logger = logging.getLogger(__name__)

    def send_confirmation(self, appointment: Appointment, client: Client, service: Service) -> None:
        if self._fail:
            raise NotificationFailed("Mock notifier configured to fail")
        self.confirmations.append((appointment.id, client.email))
        self._logger.info(
            "Mock confirmation sent",
            extra={"appointment_id": appointment.id, "service_id": service.id},
        )

    def schedule_reminders(self, appointment: Appointment, offsets: list[timedelta]) -> None:
        if self._fail:
            raise NotificationFailed("Mock notifier configured to fail")
        for offset in offsets:
            self.reminders.append((appointment.id, appointment.start - offset))
        self._logger.info(
            "Mock reminders scheduled",
            extra={"appointment_id": appointment.id, "count": len(offsets)},
        )

    def send_cancellation(
        self,
        appointment: Appointment,
        client: Client,
        service: Service,
        reason: str | None = None,
    ) -> None:
        if self._fail:
            raise NotificationFailed("Mock notifier configured to fail")
        self.cancellations.append((appointment.id, reason))
        self._logger.info("Mock cancellation sent", extra={"appointment_id": appointment.id, "reason": reason})
