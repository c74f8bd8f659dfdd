from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time


@dataclass(frozen=True)
class WorkingPeriod:
    name: str
    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(f"Working period {self.name} must start before it ends")


@dataclass(frozen=True)
class WorkingSchedule:
    working_days: frozenset[int]  # date.weekday(): Monday=0
    periods: tuple[WorkingPeriod, ...]
    closed_dates: frozenset[date] = frozenset()

    def is_open_on(self, day: date) -> bool:
        return day.weekday() in self.working_days and day not in self.closed_dates
