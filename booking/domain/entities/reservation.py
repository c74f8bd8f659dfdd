from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time


@dataclass(frozen=True)
class ReservationToken:
    token: str
    appointment_id: str
    service_id: str
    date: date
    start_time: time
    end_time: time
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
