from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date, datetime, time

from booking.domain.entities.schedule import WorkingPeriod, WorkingSchedule

PERIOD_PATTERN = re.compile(r"^\s*(?:(?P<name>[\w-]+)\s*=\s*)?(?P<start>\d{1,2}:\d{2})\s*-\s*(?P<end>\d{1,2}:\d{2})\s*$")


def parse_time(value: str | time) -> time:
    """Parse 'HH:MM' (24h) into a time."""
    if isinstance(value, time):
        return value
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        raise ValueError(f"Invalid time '{value}', expected HH:MM") from None


def parse_period(value: str, index: int = 0) -> WorkingPeriod:
    """Parse 'morning=09:00-12:00' or '09:00-12:00' into a WorkingPeriod."""
    match = PERIOD_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid working period '{value}', expected name=HH:MM-HH:MM")
    name = match.group("name") or f"period_{index + 1}"
    return WorkingPeriod(name=name, start=parse_time(match.group("start")), end=parse_time(match.group("end")))


def build_schedule(
    working_days: Iterable[int],
    periods: Iterable[str],
    closed_dates: Iterable[str | date] = (),
) -> WorkingSchedule:
    days = frozenset(int(d) for d in working_days)
    if any(d < 0 or d > 6 for d in days):
        raise ValueError("Working days must be weekday numbers between 0 (Monday) and 6 (Sunday)")

    parsed = tuple(sorted((parse_period(p, i) for i, p in enumerate(periods)), key=lambda p: p.start))
    for previous, current in zip(parsed, parsed[1:]):
        if current.start < previous.end:
            raise ValueError(f"Working periods {previous.name} and {current.name} overlap")

    closed = frozenset(d if isinstance(d, date) else date.fromisoformat(d) for d in closed_dates)
    return WorkingSchedule(working_days=days, periods=parsed, closed_dates=closed)
