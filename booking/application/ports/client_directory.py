from __future__ import annotations

from abc import ABC, abstractmethod

from booking.domain.entities.client import Client


class ClientDirectoryPort(ABC):
    @abstractmethod
    def find_by_email(self, email: str) -> Client | None:
        raise NotImplementedError

    @abstractmethod
    def create(self, client: Client) -> Client:
        """Persist a new client and return it with its assigned id."""
        raise NotImplementedError

    @abstractmethod
    def get(self, client_id: str) -> Client:
        """Raises NotFound."""
        raise NotImplementedError
