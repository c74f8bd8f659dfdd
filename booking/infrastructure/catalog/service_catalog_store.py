from __future__ import annotations

from collections.abc import Iterable

from booking.application.exceptions import NotFound
from booking.application.ports.service_catalog import ServiceCatalogPort
from booking.domain.entities.service import Service
from booking.infrastructure.catalog.service_catalog_data import SERVICE_CATALOG


class ServiceCatalogStore(ServiceCatalogPort):
    def __init__(self, services: Iterable[Service] | None = None) -> None:
        entries = tuple(SERVICE_CATALOG if services is None else services)
        self._services: dict[str, Service] = {}
        for service in entries:
            if service.id in self._services:
                raise ValueError(f"Duplicate service id {service.id}")
            self._services[service.id] = service

    def list_active(self) -> list[Service]:
        return [s for s in self._services.values() if s.is_active]

    def get_by_id(self, service_id: str) -> Service:
        service = self._services.get(service_id.strip())
        if service is None:
            raise NotFound(f"Service {service_id} not found")
        return service

    def list_categories(self) -> list[str]:
        return list(dict.fromkeys(s.category for s in self.list_active()))
