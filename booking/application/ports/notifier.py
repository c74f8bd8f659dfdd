from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta

from booking.domain.entities.appointment import Appointment
from booking.domain.entities.client import Client
from booking.domain.entities.service import Service


class NotifierPort(ABC):
    @abstractmethod
    def send_confirmation(self, appointment: Appointment, client: Client, service: Service) -> None:
        """Raises NotificationFailed."""
        raise NotImplementedError

    @abstractmethod
    def schedule_reminders(self, appointment: Appointment, offsets: list[timedelta]) -> None:
        """Schedule one reminder per offset before the appointment start. Raises NotificationFailed."""
        raise NotImplementedError

    @abstractmethod
    def send_cancellation(
        self,
        appointment: Appointment,
        client: Client,
        service: Service,
        reason: str | None = None,
    ) -> None:
        raise NotImplementedError
