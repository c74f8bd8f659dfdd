from datetime import date, timedelta

from fastapi import APIRouter, Depends

from booking.api.v1.presenters import appointment_out
from booking.api.v1.schemas import AppointmentSchema, CancelRequestSchema
from booking.api.v1.services import MAX_RANGE_DAYS
from booking.application.exceptions import ValidationError
from booking.application.ports.booking_ledger import BookingLedgerPort
from booking.application.use_cases.cancel_appointment import CancelAppointmentUseCase
from booking.domain.entities.appointment import AppointmentStatus
from booking.wiring.dependencies import get_cancel_use_case, get_ledger

router = APIRouter()


@router.get("/appointments", response_model=list[AppointmentSchema])
def list_appointments(
    start_date: date,
    end_date: date | None = None,
    service_id: str | None = None,
    status: AppointmentStatus | None = None,
    ledger: BookingLedgerPort = Depends(get_ledger),
):
    """Back-office listing: every appointment in the range, optionally narrowed by service and status."""
    end_date = end_date or start_date
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date", field_errors={"end_date": "before start_date"})
    if end_date - start_date > timedelta(days=MAX_RANGE_DAYS):
        raise ValidationError(
            f"Range is limited to {MAX_RANGE_DAYS} days",
            field_errors={"end_date": f"more than {MAX_RANGE_DAYS} days after start_date"},
        )
    return [appointment_out(a) for a in ledger.list_appointments(start_date, end_date, service_id, status)]


@router.get("/appointments/{appointment_id}", response_model=AppointmentSchema)
def get_appointment(appointment_id: str, ledger: BookingLedgerPort = Depends(get_ledger)):
    return appointment_out(ledger.get(appointment_id))


@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentSchema)
def cancel_appointment(
    appointment_id: str,
    req: CancelRequestSchema | None = None,
    uc: CancelAppointmentUseCase = Depends(get_cancel_use_case),
):
    return appointment_out(uc.execute(appointment_id, req.reason if req else None))


@router.post("/appointments/{appointment_id}/complete", response_model=AppointmentSchema)
def complete_appointment(appointment_id: str, ledger: BookingLedgerPort = Depends(get_ledger)):
    return appointment_out(ledger.complete(appointment_id))


@router.post("/appointments/{appointment_id}/reminders/{index}/sent", response_model=AppointmentSchema)
def reminder_sent(appointment_id: str, index: int, ledger: BookingLedgerPort = Depends(get_ledger)):
    """Delivery callback: the reminder scheduled with this index went out."""
    return appointment_out(ledger.mark_reminder_sent(appointment_id, index))
