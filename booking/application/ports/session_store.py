from abc import ABC, abstractmethod

from booking.domain.entities.booking_state import BookingState


class SessionStorePort(ABC):
    @abstractmethod
    def get(self, session_id: str) -> BookingState:
        """Raises NotFound."""
        raise NotImplementedError

    @abstractmethod
    def put(self, state: BookingState) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, session_id: str) -> None:
        raise NotImplementedError
