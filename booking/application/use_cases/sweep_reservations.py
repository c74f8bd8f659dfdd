from __future__ import annotations

import logging
import threading
from datetime import datetime

from booking.application.exceptions import LedgerUnavailable
from booking.application.ports.booking_ledger import BookingLedgerPort


class ReservationSweeper:
    """
    Background thread that frees lapsed holds and completes finished appointments.
    Expiry is also enforced lazily by the ledger, so a late sweep only delays cleanup.
    """

    def __init__(self, ledger: BookingLedgerPort, interval_seconds: float = 60.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("Sweep interval must be positive")
        self._ledger = ledger
        self._interval = interval_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._logger = logging.getLogger(__name__)

    def run_once(self, now: datetime | None = None) -> tuple[int, int]:
        expired = self._ledger.sweep_expired(now)
        completed = self._ledger.complete_finished(now)
        return expired, completed

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="reservation-sweeper", daemon=True)
        self._thread.start()
        self._logger.info("Reservation sweeper started", extra={"reason": f"every {self._interval}s"})

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self.run_once()
            except LedgerUnavailable as e:
                self._logger.warning("Sweep skipped, ledger busy", extra={"error": str(e)})
            except Exception as e:
                # Keep the thread alive; the next tick retries.
                self._logger.exception("Sweep failed", extra={"error": str(e)})
