from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta


def slot_id(slot_date: date, service_id: str, start_time: time) -> str:
    return f"{slot_date.isoformat()}-{service_id}-{start_time.strftime('%H:%M')}"


def add_minutes(moment: time, minutes: int) -> time:
    """Shift a wall-clock time; the result must stay on the same day."""
    shifted = datetime.combine(date.min, moment) + timedelta(minutes=minutes)
    if shifted.date() != date.min:
        raise ValueError(f"{moment.strftime('%H:%M')} + {minutes}min crosses midnight")
    return shifted.time()


@dataclass(frozen=True)
class TimeSlot:
    id: str
    service_id: str
    date: date
    start_time: time
    end_time: time
    is_available: bool = True
    is_buffer: bool = False

    @property
    def start(self) -> datetime:
        return datetime.combine(self.date, self.start_time)

    @property
    def end(self) -> datetime:
        return datetime.combine(self.date, self.end_time)

    def sort_key(self) -> tuple[date, time]:
        return (self.date, self.start_time)
