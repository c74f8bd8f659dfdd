from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, time

from booking.domain.entities.appointment import Appointment, AppointmentStatus, PaymentStatus
from booking.domain.entities.payment import PaymentResult
from booking.domain.entities.reservation import ReservationToken


class BookingLedgerPort(ABC):
    @abstractmethod
    def reserve(self, service_id: str, slot_date: date, start_time: time, end_time: time) -> ReservationToken:
        """
        Atomically hold a slot by inserting a pending appointment.
        Raises SlotConflict if an active appointment in the same calendar overlaps.
        """
        raise NotImplementedError

    @abstractmethod
    def confirm(self, token: str, payment: PaymentResult) -> Appointment:
        """
        Turn a held reservation into a confirmed appointment.
        Raises ReservationExpired or SlotConflict.
        """
        raise NotImplementedError

    @abstractmethod
    def cancel(self, appointment_id: str, reason: str | None = None) -> Appointment:
        """Cancel a pending or confirmed appointment. Idempotent. Raises NotFound."""
        raise NotImplementedError

    @abstractmethod
    def cancel_active(self, appointment_id: str, reason: str | None = None) -> tuple[Appointment, bool]:
        """
        Like cancel, and also report whether this call made the transition.
        Two racing callers on one appointment never both get True.
        """
        raise NotImplementedError

    @abstractmethod
    def release(self, token: str) -> bool:
        """Release a held reservation early. Returns False if nothing was held."""
        raise NotImplementedError

    @abstractmethod
    def sweep_expired(self, now: datetime | None = None) -> int:
        """Release every hold whose window elapsed. Returns how many were released."""
        raise NotImplementedError

    @abstractmethod
    def is_held(self, token: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get(self, appointment_id: str) -> Appointment:
        """Raises NotFound."""
        raise NotImplementedError

    @abstractmethod
    def list_active(
        self,
        service_id: str | None,
        start_date: date,
        end_date: date,
    ) -> list[Appointment]:
        """
        Pending (with a live hold) and confirmed appointments between two dates, inclusive.
        service_id=None returns every service.
        """
        raise NotImplementedError

    @abstractmethod
    def list_appointments(
        self,
        start_date: date,
        end_date: date,
        service_id: str | None = None,
        status: AppointmentStatus | None = None,
    ) -> list[Appointment]:
        """Appointments of any status between two dates, inclusive, ordered by start. Lapsed holds are left out."""
        raise NotImplementedError

    @abstractmethod
    def assign_client(self, appointment_id: str, client_id: str) -> Appointment:
        raise NotImplementedError

    @abstractmethod
    def record_payment(
        self,
        appointment_id: str,
        status: PaymentStatus,
        amount: float | None = None,
    ) -> Appointment:
        """Move the payment status forward (pending -> partial -> paid, paid/partial -> refunded)."""
        raise NotImplementedError

    @abstractmethod
    def mark_reminder_sent(self, appointment_id: str, index: int) -> Appointment:
        raise NotImplementedError

    @abstractmethod
    def complete(self, appointment_id: str) -> Appointment:
        """Mark a confirmed appointment as completed."""
        raise NotImplementedError

    @abstractmethod
    def complete_finished(self, now: datetime | None = None) -> int:
        """Complete every confirmed appointment whose end time has passed."""
        raise NotImplementedError
