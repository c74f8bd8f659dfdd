from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query

from booking.api.v1.presenters import service_out, slot_out
from booking.api.v1.schemas import ServiceSchema, TimeSlotSchema
from booking.application.exceptions import ValidationError
from booking.application.ports.service_catalog import ServiceCatalogPort
from booking.application.use_cases.availability import AvailabilityEngine
from booking.application.utils.catalog_filters import ServiceFilter, filter_services
from booking.wiring.dependencies import get_availability, get_catalog

router = APIRouter()

MAX_RANGE_DAYS = 62


@router.get("/services", response_model=list[ServiceSchema])
def list_services(
    search: str | None = None,
    category: str | None = None,
    price_band: str | None = None,
    duration_band: str | None = None,
    catalog: ServiceCatalogPort = Depends(get_catalog),
):
    service_filter = ServiceFilter(
        search=search,
        category=category,
        price_band=price_band,
        duration_band=duration_band,
    )
    try:
        services = filter_services(catalog.list_active(), service_filter)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    return [service_out(s) for s in services]


@router.get("/services/categories", response_model=list[str])
def list_categories(catalog: ServiceCatalogPort = Depends(get_catalog)):
    return catalog.list_categories()


@router.get("/services/{service_id}", response_model=ServiceSchema)
def get_service(service_id: str, catalog: ServiceCatalogPort = Depends(get_catalog)):
    return service_out(catalog.get_by_id(service_id))


@router.get("/services/{service_id}/availability", response_model=list[TimeSlotSchema])
def availability(
    service_id: str,
    start_date: date,
    end_date: date | None = None,
    include_unavailable: bool = Query(default=False),
    catalog: ServiceCatalogPort = Depends(get_catalog),
    engine: AvailabilityEngine = Depends(get_availability),
):
    end_date = end_date or start_date
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date", field_errors={"end_date": "before start_date"})
    if end_date - start_date > timedelta(days=MAX_RANGE_DAYS):
        raise ValidationError(
            f"Range is limited to {MAX_RANGE_DAYS} days",
            field_errors={"end_date": f"more than {MAX_RANGE_DAYS} days after start_date"},
        )

    service = catalog.get_by_id(service_id)
    if include_unavailable:
        slots = engine.slots(service, start_date, end_date)
    else:
        slots = engine.available(service, start_date, end_date)
    return [slot_out(s) for s in slots]


@router.get("/services/{service_id}/next-available", response_model=TimeSlotSchema | None)
def next_available(
    service_id: str,
    catalog: ServiceCatalogPort = Depends(get_catalog),
    engine: AvailabilityEngine = Depends(get_availability),
):
    slot = engine.next_available(catalog.get_by_id(service_id))
    return slot_out(slot) if slot else None
