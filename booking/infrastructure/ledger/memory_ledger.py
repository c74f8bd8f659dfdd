from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta

from booking.application.exceptions import (
    InvalidTransition,
    LedgerUnavailable,
    NotFound,
    ReservationExpired,
    SlotConflict,
    ValidationError,
)
from booking.application.ports.booking_ledger import BookingLedgerPort
from booking.application.utils.clock import Clock
from booking.application.utils.intervals import overlaps_with_buffer
from booking.domain.entities.appointment import Appointment, AppointmentStatus, PaymentStatus
from booking.domain.entities.payment import PaymentResult
from booking.domain.entities.reservation import ReservationToken

HELD = "held"
CONFIRMED = "confirmed"
RELEASED = "released"
EXPIRED = "expired"
CANCELLED = "cancelled"

# Finalized holds are kept this long so late confirms get a precise error.
FINALIZED_HOLD_RETENTION = timedelta(hours=24)

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PARTIAL, PaymentStatus.PAID}),
    PaymentStatus.PARTIAL: frozenset({PaymentStatus.PAID, PaymentStatus.REFUNDED}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
}


@dataclass
class Hold:
    reservation: ReservationToken
    state: str = HELD


Snapshot = tuple[dict[str, Appointment], dict[str, Hold], dict[str, str]]


class MemoryBookingLedger(BookingLedgerPort):
    """
    In-process ledger. Every read-modify-write runs under one lock, so reserve is a
    single conditional insert and confirm/cancel/sweep are compare-and-transition
    operations on the appointment's current status. A mutation whose write fails
    is rolled back before the lock is released.
    """

    def __init__(
        self,
        clock: Clock,
        hold_minutes: int = 15,
        buffer_minutes: int = 15,
        shared_calendar: bool = False,
        reminder_count: int = 2,
        lock_timeout_seconds: float = 5.0,
    ) -> None:
        self._clock = clock
        self._hold = timedelta(minutes=hold_minutes)
        self._buffer = timedelta(minutes=buffer_minutes)
        self._shared_calendar = shared_calendar
        self._reminder_count = reminder_count
        self._lock_timeout = lock_timeout_seconds
        self._lock = threading.Lock()
        self._appointments: dict[str, Appointment] = {}
        self._holds: dict[str, Hold] = {}
        self._hold_by_appointment: dict[str, str] = {}
        self._logger = logging.getLogger(__name__)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise LedgerUnavailable("Booking ledger is busy, try again")
        try:
            yield
        finally:
            self._lock.release()

    def _persist(self) -> None:
        """Called under the lock after every mutation."""

    def _snapshot(self) -> Snapshot:
        holds = {token: replace(hold) for token, hold in self._holds.items()}
        return dict(self._appointments), holds, dict(self._hold_by_appointment)

    def _commit(self, snapshot: Snapshot) -> None:
        """Persist a mutation, or put the state back as it was and report the ledger unavailable."""
        try:
            self._persist()
        except (OSError, TypeError, ValueError) as e:
            self._appointments, self._holds, self._hold_by_appointment = snapshot
            self._logger.error("Ledger write failed, change rolled back", extra={"error": str(e)})
            raise LedgerUnavailable("Booking ledger could not be saved, try again") from e

    def reserve(self, service_id: str, slot_date: date, start_time: time, end_time: time) -> ReservationToken:
        if start_time >= end_time:
            raise ValidationError("Slot must start before it ends", field_errors={"start_time": "after end_time"})
        start = datetime.combine(slot_date, start_time)
        end = datetime.combine(slot_date, end_time)

        with self._locked():
            snapshot = self._snapshot()
            now = self._clock()
            if start < now:
                raise ValidationError("Cannot reserve a slot in the past", field_errors={"start_time": "in the past"})

            lapsed = False
            for existing in self._conflicting(service_id, start, end):
                hold = self._hold_for(existing.id)
                if existing.status is AppointmentStatus.PENDING and hold and hold.reservation.is_expired(now):
                    self._finalize(hold, EXPIRED)
                    lapsed = True
                    continue
                if lapsed:
                    self._commit(snapshot)
                self._logger.info(
                    "Reserve rejected, slot taken",
                    extra={"service_id": service_id, "slot": f"{slot_date} {start_time:%H:%M}"},
                )
                raise SlotConflict(f"Slot {slot_date} {start_time:%H:%M} is no longer available")

            appointment = Appointment(
                id=uuid.uuid4().hex,
                service_id=service_id,
                date=slot_date,
                start_time=start_time,
                end_time=end_time,
                created_at=now,
                updated_at=now,
                reminders_sent=tuple(False for _ in range(self._reminder_count)),
            )
            reservation = ReservationToken(
                token=uuid.uuid4().hex,
                appointment_id=appointment.id,
                service_id=service_id,
                date=slot_date,
                start_time=start_time,
                end_time=end_time,
                expires_at=now + self._hold,
            )
            self._appointments[appointment.id] = appointment
            self._holds[reservation.token] = Hold(reservation=reservation)
            self._hold_by_appointment[appointment.id] = reservation.token
            self._commit(snapshot)

        self._logger.info(
            "Slot reserved",
            extra={"appointment_id": appointment.id, "service_id": service_id, "slot": f"{slot_date} {start_time:%H:%M}"},
        )
        return reservation

    def confirm(self, token: str, payment: PaymentResult) -> Appointment:
        with self._locked():
            snapshot = self._snapshot()
            now = self._clock()
            hold = self._holds.get(token)
            if hold is None:
                raise SlotConflict("Unknown reservation")
            if hold.state == HELD and hold.reservation.is_expired(now):
                self._finalize(hold, EXPIRED)
                self._commit(snapshot)
            if hold.state in (EXPIRED, CANCELLED):
                raise ReservationExpired("The reservation hold has lapsed, please pick a slot again")
            if hold.state != HELD:
                raise SlotConflict(f"Reservation already {hold.state}")

            appointment = self._appointments[hold.reservation.appointment_id]
            confirmed = replace(
                appointment,
                status=AppointmentStatus.CONFIRMED,
                payment_status=payment.status,
                payment_amount=payment.amount,
                payment_method=payment.method,
                charge_id=payment.charge_id,
                updated_at=now,
            )
            self._appointments[confirmed.id] = confirmed
            hold.state = CONFIRMED
            self._commit(snapshot)

        self._logger.info(
            "Appointment confirmed",
            extra={"appointment_id": confirmed.id, "service_id": confirmed.service_id, "token": token},
        )
        return confirmed

    def cancel(self, appointment_id: str, reason: str | None = None) -> Appointment:
        appointment, _ = self.cancel_active(appointment_id, reason)
        return appointment

    def cancel_active(self, appointment_id: str, reason: str | None = None) -> tuple[Appointment, bool]:
        with self._locked():
            snapshot = self._snapshot()
            now = self._clock()
            appointment = self._get(appointment_id)
            if appointment.status is AppointmentStatus.CANCELLED:
                return appointment, False
            if appointment.status is AppointmentStatus.COMPLETED:
                raise InvalidTransition(f"Appointment {appointment_id} is already completed")

            if appointment.status is AppointmentStatus.PENDING:
                hold = self._hold_for(appointment_id)
                if hold is not None and hold.reservation.is_expired(now):
                    self._finalize(hold, EXPIRED)
                    self._commit(snapshot)
                    raise NotFound(f"Appointment {appointment_id} not found")
                if hold is not None:
                    hold.state = CANCELLED

            cancelled = replace(
                appointment,
                status=AppointmentStatus.CANCELLED,
                cancellation_reason=reason,
                updated_at=now,
            )
            self._appointments[appointment_id] = cancelled
            self._commit(snapshot)

        self._logger.info("Appointment cancelled", extra={"appointment_id": appointment_id, "reason": reason})
        return cancelled, True

    def release(self, token: str) -> bool:
        with self._locked():
            snapshot = self._snapshot()
            hold = self._holds.get(token)
            if hold is None or hold.state != HELD:
                return False
            self._finalize(hold, RELEASED)
            self._commit(snapshot)
        self._logger.info("Reservation released", extra={"token": token})
        return True

    def sweep_expired(self, now: datetime | None = None) -> int:
        with self._locked():
            snapshot = self._snapshot()
            now = now or self._clock()
            lapsed = [h for h in self._holds.values() if h.state == HELD and h.reservation.is_expired(now)]
            for hold in lapsed:
                self._finalize(hold, EXPIRED)
            pruned = self._prune(now)
            if lapsed or pruned:
                self._commit(snapshot)

        if lapsed:
            self._logger.info("Expired reservations released", extra={"count": len(lapsed)})
        return len(lapsed)

    def is_held(self, token: str) -> bool:
        with self._locked():
            hold = self._holds.get(token)
            return bool(hold and hold.state == HELD and not hold.reservation.is_expired(self._clock()))

    def get(self, appointment_id: str) -> Appointment:
        with self._locked():
            return self._get(appointment_id)

    def list_active(self, service_id: str | None, start_date: date, end_date: date) -> list[Appointment]:
        with self._locked():
            now = self._clock()
            active = [
                a
                for a in self._appointments.values()
                if start_date <= a.date <= end_date
                and (service_id is None or a.service_id == service_id)
                and self._is_live(a, now)
            ]
        return sorted(active, key=lambda a: a.start)

    def list_appointments(
        self,
        start_date: date,
        end_date: date,
        service_id: str | None = None,
        status: AppointmentStatus | None = None,
    ) -> list[Appointment]:
        with self._locked():
            now = self._clock()
            found = [
                a
                for a in self._appointments.values()
                if start_date <= a.date <= end_date
                and (service_id is None or a.service_id == service_id)
                and (status is None or a.status is status)
                and (a.status is not AppointmentStatus.PENDING or self._is_live(a, now))
            ]
        return sorted(found, key=lambda a: a.start)

    def assign_client(self, appointment_id: str, client_id: str) -> Appointment:
        return self._update(appointment_id, client_id=client_id)

    def record_payment(
        self,
        appointment_id: str,
        status: PaymentStatus,
        amount: float | None = None,
    ) -> Appointment:
        with self._locked():
            snapshot = self._snapshot()
            appointment = self._get(appointment_id)
            current = appointment.payment_status
            if status is not current and status not in PAYMENT_TRANSITIONS[current]:
                raise InvalidTransition(f"Payment cannot move from {current.value} to {status.value}")
            updated = replace(
                appointment,
                payment_status=status,
                payment_amount=appointment.payment_amount if amount is None else amount,
                updated_at=self._clock(),
            )
            self._appointments[appointment_id] = updated
            self._commit(snapshot)

        self._logger.info(
            "Payment recorded",
            extra={"appointment_id": appointment_id, "reason": f"{current.value}->{status.value}"},
        )
        return updated

    def mark_reminder_sent(self, appointment_id: str, index: int) -> Appointment:
        with self._locked():
            snapshot = self._snapshot()
            appointment = self._get(appointment_id)
            if not 0 <= index < len(appointment.reminders_sent):
                raise ValidationError(
                    f"No reminder #{index} for appointment {appointment_id}",
                    field_errors={"index": f"must be between 0 and {len(appointment.reminders_sent) - 1}"},
                )
            flags = list(appointment.reminders_sent)
            flags[index] = True
            updated = replace(appointment, reminders_sent=tuple(flags), updated_at=self._clock())
            self._appointments[appointment_id] = updated
            self._commit(snapshot)
        return updated

    def complete(self, appointment_id: str) -> Appointment:
        with self._locked():
            snapshot = self._snapshot()
            appointment = self._get(appointment_id)
            if appointment.status is AppointmentStatus.COMPLETED:
                return appointment
            if appointment.status is not AppointmentStatus.CONFIRMED:
                raise InvalidTransition(f"Only confirmed appointments can complete, got {appointment.status.value}")
            updated = replace(appointment, status=AppointmentStatus.COMPLETED, updated_at=self._clock())
            self._appointments[appointment_id] = updated
            self._commit(snapshot)
        self._logger.info("Appointment completed", extra={"appointment_id": appointment_id})
        return updated

    def complete_finished(self, now: datetime | None = None) -> int:
        with self._locked():
            snapshot = self._snapshot()
            now = now or self._clock()
            finished = [
                a for a in self._appointments.values()
                if a.status is AppointmentStatus.CONFIRMED and a.end <= now
            ]
            for appointment in finished:
                self._appointments[appointment.id] = replace(
                    appointment, status=AppointmentStatus.COMPLETED, updated_at=now
                )
            if finished:
                self._commit(snapshot)

        if finished:
            self._logger.info("Finished appointments completed", extra={"count": len(finished)})
        return len(finished)

    def _update(self, appointment_id: str, **changes: object) -> Appointment:
        with self._locked():
            snapshot = self._snapshot()
            updated = replace(self._get(appointment_id), updated_at=self._clock(), **changes)
            self._appointments[appointment_id] = updated
            self._commit(snapshot)
        return updated

    # Everything below expects the lock to be held.

    def _get(self, appointment_id: str) -> Appointment:
        appointment = self._appointments.get(appointment_id)
        if appointment is None:
            raise NotFound(f"Appointment {appointment_id} not found")
        return appointment

    def _hold_for(self, appointment_id: str) -> Hold | None:
        token = self._hold_by_appointment.get(appointment_id)
        return self._holds.get(token) if token else None

    def _is_live(self, appointment: Appointment, now: datetime) -> bool:
        if appointment.status is AppointmentStatus.CONFIRMED:
            return True
        if appointment.status is AppointmentStatus.PENDING:
            hold = self._hold_for(appointment.id)
            return hold is not None and hold.state == HELD and not hold.reservation.is_expired(now)
        return False

    def _conflicting(self, service_id: str, start: datetime, end: datetime) -> list[Appointment]:
        return [
            a
            for a in self._appointments.values()
            if a.is_active
            and (self._shared_calendar or a.service_id == service_id)
            and overlaps_with_buffer(start, end, a.start, a.end, self._buffer)
        ]

    def _finalize(self, hold: Hold, state: str) -> None:
        """Drop the pending row behind a hold; the slot simply becomes free again."""
        hold.state = state
        appointment_id = hold.reservation.appointment_id
        appointment = self._appointments.get(appointment_id)
        if appointment is not None and appointment.status is AppointmentStatus.PENDING:
            del self._appointments[appointment_id]
            self._hold_by_appointment.pop(appointment_id, None)

    def _prune(self, now: datetime) -> int:
        stale = [
            token
            for token, hold in self._holds.items()
            if hold.state != HELD and hold.reservation.expires_at + FINALIZED_HOLD_RETENTION < now
        ]
        for token in stale:
            hold = self._holds.pop(token)
            appointment_id = hold.reservation.appointment_id
            if self._hold_by_appointment.get(appointment_id) == token:
                del self._hold_by_appointment[appointment_id]
        return len(stale)
