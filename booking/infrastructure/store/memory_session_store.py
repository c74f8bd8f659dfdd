from __future__ import annotations

import threading

from booking.application.exceptions import NotFound
from booking.application.ports.session_store import SessionStorePort
from booking.domain.entities.booking_state import BookingState


class MemorySessionStore(SessionStorePort):
    def __init__(self, limit: int = 10_000) -> None:
        self._states: dict[str, BookingState] = {}
        self._limit = limit
        self._lock = threading.Lock()

    def get(self, session_id: str) -> BookingState:
        with self._lock:
            state = self._states.get(session_id)
        if state is None:
            raise NotFound(f"Booking session {session_id} not found")
        return state

    def put(self, state: BookingState) -> None:
        with self._lock:
            self._states.pop(state.session_id, None)
            self._states[state.session_id] = state
            # Oldest sessions go first; dicts keep insertion order.
            while len(self._states) > self._limit:
                self._states.pop(next(iter(self._states)))

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._states.pop(session_id, None)
