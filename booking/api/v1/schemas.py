from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, Field

from booking.domain.entities.appointment import AppointmentStatus, PaymentMethod, PaymentStatus
from booking.domain.entities.payment import PaymentOption


class ServiceSchema(BaseModel):
    id: str
    name: str
    category: str
    description: str
    duration_minutes: int
    price: float
    color: str
    requirements: list[str] = Field(default_factory=list)


class TimeSlotSchema(BaseModel):
    id: str
    service_id: str
    date: date
    start_time: time
    end_time: time
    is_available: bool
    is_buffer: bool


class ReserveRequestSchema(BaseModel):
    service_id: str
    date: date
    start_time: time


class ReservationSchema(BaseModel):
    token: str
    appointment_id: str
    service_id: str
    date: date
    start_time: time
    end_time: time
    expires_at: datetime


class ConfirmRequestSchema(BaseModel):
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_amount: float = Field(default=0.0, ge=0)
    payment_method: PaymentMethod | None = None
    charge_id: str | None = None


class ReleaseResponseSchema(BaseModel):
    released: bool


class CancelRequestSchema(BaseModel):
    reason: str | None = None


class AppointmentSchema(BaseModel):
    id: str
    service_id: str
    client_id: str | None
    date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    payment_status: PaymentStatus
    payment_amount: float
    payment_method: PaymentMethod | None
    reminders_sent: list[bool]
    notes: str | None
    cancellation_reason: str | None
    created_at: datetime
    updated_at: datetime


class AddressSchema(BaseModel):
    street: str
    city: str
    postal_code: str
    country: str


class ClientSchema(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    company: str | None = None
    address: AddressSchema | None = None
    language: str = "en"
    notifications: bool = True


class SelectServiceSchema(BaseModel):
    service_id: str


class SelectSlotSchema(BaseModel):
    date: date
    start_time: time


class SubmitClientSchema(BaseModel):
    client: ClientSchema
    consent_accepted: bool = False


class PaymentOptionSchema(BaseModel):
    option: PaymentOption


class AdvanceRequestSchema(BaseModel):
    method: PaymentMethod = PaymentMethod.CARD
    payment_details: dict[str, Any] = Field(default_factory=dict)


class QuoteSchema(BaseModel):
    option: PaymentOption
    total: float
    due_now: float
    remainder: float


class StepErrorSchema(BaseModel):
    kind: str
    message: str
    field_errors: dict[str, str] = Field(default_factory=dict)


class SessionSchema(BaseModel):
    session_id: str
    stage: str
    can_advance: bool
    service_id: str | None = None
    slot: TimeSlotSchema | None = None
    client: ClientSchema | None = None
    consent_accepted: bool = False
    payment_option: PaymentOption | None = None
    reservation: ReservationSchema | None = None
    appointment_id: str | None = None


class StepResponseSchema(BaseModel):
    action: str
    session: SessionSchema
    error: StepErrorSchema | None = None
    slots: list[TimeSlotSchema] | None = None
    quote: QuoteSchema | None = None
    appointment: AppointmentSchema | None = None
