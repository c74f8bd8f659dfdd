from fastapi import APIRouter, Depends

from booking.api.v1.presenters import appointment_out
from booking.api.v1.schemas import (
    AppointmentSchema,
    ConfirmRequestSchema,
    ReleaseResponseSchema,
    ReservationSchema,
    ReserveRequestSchema,
)
from booking.application.exceptions import ValidationError
from booking.application.ports.booking_ledger import BookingLedgerPort
from booking.application.ports.service_catalog import ServiceCatalogPort
from booking.application.use_cases.availability import AvailabilityEngine
from booking.domain.entities.payment import PaymentResult
from booking.wiring.dependencies import get_availability, get_catalog, get_ledger

router = APIRouter()


@router.post("/reservations", response_model=ReservationSchema, status_code=201)
def reserve(
    req: ReserveRequestSchema,
    catalog: ServiceCatalogPort = Depends(get_catalog),
    ledger: BookingLedgerPort = Depends(get_ledger),
    engine: AvailabilityEngine = Depends(get_availability),
):
    service = catalog.get_by_id(req.service_id)
    if not service.is_active:
        raise ValidationError("Service is not bookable", field_errors={"service_id": "inactive"})

    # Only slots the schedule offers can be held; a taken one still fails in the ledger as a conflict.
    slot = next((s for s in engine.slots(service, req.date, req.date) if s.start_time == req.start_time), None)
    if slot is None:
        raise ValidationError("Not a bookable slot", field_errors={"start_time": "outside working hours"})
    reservation = ledger.reserve(service.id, slot.date, slot.start_time, slot.end_time)
    return ReservationSchema.model_validate(reservation, from_attributes=True)


@router.post("/reservations/{token}/confirm", response_model=AppointmentSchema)
def confirm(
    token: str,
    req: ConfirmRequestSchema,
    ledger: BookingLedgerPort = Depends(get_ledger),
):
    payment = PaymentResult(
        status=req.payment_status,
        amount=req.payment_amount,
        method=req.payment_method,
        charge_id=req.charge_id,
    )
    return appointment_out(ledger.confirm(token, payment))


@router.delete("/reservations/{token}", response_model=ReleaseResponseSchema)
def release(token: str, ledger: BookingLedgerPort = Depends(get_ledger)):
    return ReleaseResponseSchema(released=ledger.release(token))
