from __future__ import annotations

from booking.api.v1.schemas import (
    AddressSchema,
    AppointmentSchema,
    ClientSchema,
    QuoteSchema,
    ReservationSchema,
    ServiceSchema,
    SessionSchema,
    StepErrorSchema,
    StepResponseSchema,
    TimeSlotSchema,
)
from booking.application.use_cases.booking import StepResult
from booking.domain.entities.appointment import Appointment
from booking.domain.entities.booking_state import BookingState
from booking.domain.entities.client import Address, Client, ClientPreferences
from booking.domain.entities.service import Service
from booking.domain.entities.time_slot import TimeSlot


def service_out(service: Service) -> ServiceSchema:
    return ServiceSchema.model_validate(service, from_attributes=True)


def slot_out(slot: TimeSlot) -> TimeSlotSchema:
    return TimeSlotSchema.model_validate(slot, from_attributes=True)


def appointment_out(appointment: Appointment) -> AppointmentSchema:
    return AppointmentSchema.model_validate(appointment, from_attributes=True)


def client_in(data: ClientSchema) -> Client:
    address = Address(**data.address.model_dump()) if data.address else None
    return Client(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        phone=data.phone,
        company=data.company,
        address=address,
        preferences=ClientPreferences(language=data.language, notifications=data.notifications),
    )


def client_out(client: Client) -> ClientSchema:
    address = client.address
    return ClientSchema(
        first_name=client.first_name,
        last_name=client.last_name,
        email=client.email,
        phone=client.phone,
        company=client.company,
        address=AddressSchema.model_validate(address, from_attributes=True) if address else None,
        language=client.preferences.language,
        notifications=client.preferences.notifications,
    )


def session_out(state: BookingState, can_advance: bool) -> SessionSchema:
    selections = state.selections
    return SessionSchema(
        session_id=state.session_id,
        stage=state.stage.name.lower(),
        can_advance=can_advance,
        service_id=selections.service_id,
        slot=slot_out(selections.slot) if selections.slot else None,
        client=client_out(selections.client) if selections.client else None,
        consent_accepted=selections.consent_accepted,
        payment_option=selections.payment_option,
        reservation=(
            ReservationSchema.model_validate(state.reservation, from_attributes=True)
            if state.reservation
            else None
        ),
        appointment_id=state.appointment_id,
    )


def step_out(result: StepResult, can_advance: bool) -> StepResponseSchema:
    return StepResponseSchema(
        action=result.action,
        session=session_out(result.updated_state, can_advance),
        error=(
            StepErrorSchema(
                kind=result.error_kind,
                message=result.error_message or "",
                field_errors=result.field_errors,
            )
            if not result.ok
            else None
        ),
        slots=[slot_out(s) for s in result.slots] if result.slots is not None else None,
        quote=QuoteSchema.model_validate(result.quote, from_attributes=True) if result.quote else None,
        appointment=appointment_out(result.appointment) if result.appointment else None,
    )
