from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime, timedelta

from booking.application.utils.clock import Clock
from booking.domain.entities.schedule import WorkingPeriod, WorkingSchedule
from booking.domain.entities.service import Service
from booking.domain.entities.time_slot import TimeSlot, slot_id


class SlotGenerator:
    """
    Candidate slots from the working schedule, independent of bookings.

    Every call to generate() returns a fresh lazy iterator over a finite range,
    so the same request can be replayed. Slots starting before "now" are skipped.
    """

    def __init__(self, schedule: WorkingSchedule, clock: Clock, increment_minutes: int = 15) -> None:
        if increment_minutes <= 0:
            raise ValueError("Slot increment must be positive")
        self._schedule = schedule
        self._clock = clock
        self._increment = timedelta(minutes=increment_minutes)

    @property
    def schedule(self) -> WorkingSchedule:
        return self._schedule

    def generate(self, service: Service, start_date: date, end_date: date) -> Iterator[TimeSlot]:
        if end_date < start_date:
            return iter(())
        return self._iter_slots(service, start_date, end_date, self._clock())

    def _iter_slots(self, service: Service, start_date: date, end_date: date, now: datetime) -> Iterator[TimeSlot]:
        duration = timedelta(minutes=service.duration_minutes)
        current = max(start_date, now.date())
        while current <= end_date:
            if self._schedule.is_open_on(current):
                for period in self._schedule.periods:
                    yield from self._period_slots(service, current, period, duration, now)
            current += timedelta(days=1)

    def _period_slots(
        self,
        service: Service,
        day: date,
        period: WorkingPeriod,
        duration: timedelta,
        now: datetime,
    ) -> Iterator[TimeSlot]:
        cursor = datetime.combine(day, period.start)
        period_end = datetime.combine(day, period.end)
        while cursor + duration <= period_end:
            if cursor >= now:
                yield TimeSlot(
                    id=slot_id(day, service.id, cursor.time()),
                    service_id=service.id,
                    date=day,
                    start_time=cursor.time(),
                    end_time=(cursor + duration).time(),
                )
            cursor += self._increment
