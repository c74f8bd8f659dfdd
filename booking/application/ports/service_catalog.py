from __future__ import annotations

from abc import ABC, abstractmethod

from booking.domain.entities.service import Service


class ServiceCatalogPort(ABC):
    @abstractmethod
    def list_active(self) -> list[Service]:
        """Active services in catalog order."""
        raise NotImplementedError

    @abstractmethod
    def get_by_id(self, service_id: str) -> Service:
        """Get a service by id. Raises NotFound."""
        raise NotImplementedError

    @abstractmethod
    def list_categories(self) -> list[str]:
        """Distinct categories of active services, first-seen order."""
        raise NotImplementedError
