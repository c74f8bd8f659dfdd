from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def local_clock(timezone: ZoneInfo) -> Clock:
    """
    Wall-clock "now" in the provider's zone, returned naive.
    Every date and time in the booking core is expressed in that single zone.
    """

    def now() -> datetime:
        return datetime.now(timezone).replace(tzinfo=None)

    return now


def safe_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except Exception:
        return ZoneInfo("UTC")
