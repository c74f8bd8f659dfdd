from __future__ import annotations

from datetime import datetime, timedelta


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open intervals: touching at a boundary is not an overlap."""
    return start_a < end_b and start_b < end_a


def overlaps_with_buffer(
    start: datetime,
    end: datetime,
    booked_start: datetime,
    booked_end: datetime,
    buffer: timedelta,
) -> bool:
    """
    The buffer follows every appointment, the booked one and the candidate alike,
    so the resource always gets its gap whichever of the two comes first.
    """
    return overlaps(start, end + buffer, booked_start, booked_end + buffer)
