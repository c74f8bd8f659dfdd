from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, timedelta

from booking.application.ports.booking_ledger import BookingLedgerPort
from booking.application.use_cases.generate_slots import SlotGenerator
from booking.application.utils.clock import Clock
from booking.application.utils.intervals import overlaps, overlaps_with_buffer
from booking.domain.entities.appointment import Appointment
from booking.domain.entities.service import Service
from booking.domain.entities.time_slot import TimeSlot

ONE_DAY = timedelta(days=1)


def _around(day: date) -> tuple[date, date, date]:
    return day - ONE_DAY, day, day + ONE_DAY


class AvailabilityEngine:
    """
    Intersects candidate slots with the ledger's active appointments.

    Reads are not serialized with reserve(): a slot reported free here can still
    be lost to a concurrent booker, which the workflow resolves through SlotConflict.
    """

    def __init__(
        self,
        generator: SlotGenerator,
        ledger: BookingLedgerPort,
        clock: Clock,
        buffer_minutes: int = 15,
        shared_calendar: bool = False,
        horizon_days: int = 30,
    ) -> None:
        self._generator = generator
        self._ledger = ledger
        self._clock = clock
        self._buffer = timedelta(minutes=buffer_minutes)
        self._shared_calendar = shared_calendar
        self._horizon_days = horizon_days
        self._logger = logging.getLogger(__name__)

    def slots(self, service: Service, start_date: date, end_date: date) -> list[TimeSlot]:
        """Every candidate slot in the range, flagged available or not, by date then start."""
        # A buffer can spill over midnight, so neighbouring days count too.
        booked = self._ledger.list_active(
            None if self._shared_calendar else service.id,
            start_date - ONE_DAY,
            end_date + ONE_DAY,
        )
        by_date: dict[date, list[Appointment]] = {}
        for appointment in booked:
            by_date.setdefault(appointment.date, []).append(appointment)

        result = [
            self._mark(slot, [a for day in _around(slot.date) for a in by_date.get(day, [])])
            for slot in self._generator.generate(service, start_date, end_date)
        ]
        result.sort(key=TimeSlot.sort_key)
        return result

    def available(self, service: Service, start_date: date, end_date: date) -> list[TimeSlot]:
        free = [slot for slot in self.slots(service, start_date, end_date) if slot.is_available]
        self._logger.debug(
            "Availability computed",
            extra={"service_id": service.id, "slot": f"{start_date}..{end_date}", "count": len(free)},
        )
        return free

    def next_available(self, service: Service) -> TimeSlot | None:
        today = self._clock().date()
        horizon_end = today + timedelta(days=self._horizon_days)
        # Scan a week at a time so the common case touches only a few days.
        window_start = today
        while window_start <= horizon_end:
            window_end = min(window_start + timedelta(days=6), horizon_end)
            free = self.available(service, window_start, window_end)
            if free:
                return free[0]
            window_start = window_end + timedelta(days=1)
        return None

    def is_slot_available(self, service: Service, slot: TimeSlot) -> bool:
        return any(
            candidate.id == slot.id and candidate.is_available
            for candidate in self.slots(service, slot.date, slot.date)
        )

    def _mark(self, slot: TimeSlot, booked: list[Appointment]) -> TimeSlot:
        blocked_by_buffer = False
        for appointment in booked:
            if overlaps(slot.start, slot.end, appointment.start, appointment.end):
                return replace(slot, is_available=False, is_buffer=False)
            if overlaps_with_buffer(slot.start, slot.end, appointment.start, appointment.end, self._buffer):
                blocked_by_buffer = True
        if blocked_by_buffer:
            return replace(slot, is_available=False, is_buffer=True)
        return slot
