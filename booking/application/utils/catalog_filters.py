from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from booking.domain.entities.service import Service

ServicePredicate = Callable[[Service], bool]

PRICE_BANDS: dict[str, ServicePredicate] = {
    "free": lambda s: s.price == 0,
    "under_100": lambda s: 0 < s.price < 100,
    "100_plus": lambda s: s.price >= 100,
}

DURATION_BANDS: dict[str, ServicePredicate] = {
    "short": lambda s: s.duration_minutes <= 60,
    "medium": lambda s: 60 < s.duration_minutes <= 120,
    "long": lambda s: s.duration_minutes > 120,
}


@dataclass(frozen=True)
class ServiceFilter:
    search: str | None = None
    category: str | None = None
    price_band: str | None = None
    duration_band: str | None = None

    def predicates(self) -> list[ServicePredicate]:
        predicates: list[ServicePredicate] = []
        if self.search and self.search.strip():
            predicates.append(matches_search(self.search))
        if self.category:
            predicates.append(in_category(self.category))
        if self.price_band:
            predicates.append(_band(PRICE_BANDS, self.price_band, "price"))
        if self.duration_band:
            predicates.append(_band(DURATION_BANDS, self.duration_band, "duration"))
        return predicates


def matches_search(term: str) -> ServicePredicate:
    needle = term.strip().lower()

    def predicate(service: Service) -> bool:
        haystack = (service.name, service.description, service.category)
        return any(needle in field.lower() for field in haystack)

    return predicate


def in_category(category: str) -> ServicePredicate:
    return lambda service: service.category == category


def filter_services(services: Iterable[Service], service_filter: ServiceFilter) -> list[Service]:
    """Apply every active filter. Filters are independent, so order never matters."""
    predicates = service_filter.predicates()
    return [s for s in services if all(p(s) for p in predicates)]


def _band(bands: dict[str, ServicePredicate], name: str, label: str) -> ServicePredicate:
    try:
        return bands[name]
    except KeyError:
        raise ValueError(f"Unknown {label} filter '{name}'. Expected one of: {', '.join(bands)}") from None
