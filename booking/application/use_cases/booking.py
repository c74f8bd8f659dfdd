from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, time, timedelta

from booking.application.exceptions import (
    BookingError,
    CheckoutTimeout,
    InvalidTransition,
    LedgerUnavailable,
    NotificationFailed,
    PaymentFailed,
    ReservationExpired,
    SlotConflict,
    ValidationError,
)
from booking.application.ports.booking_ledger import BookingLedgerPort
from booking.application.ports.client_directory import ClientDirectoryPort
from booking.application.ports.notifier import NotifierPort
from booking.application.ports.payment_gateway import PaymentGatewayPort
from booking.application.ports.service_catalog import ServiceCatalogPort
from booking.application.use_cases.availability import AvailabilityEngine
from booking.application.utils.client_validation import DEFAULT_PHONE_PATTERN, client_errors
from booking.application.utils.clock import Clock
from booking.application.utils.payments import payment_result_for, quote, to_minor_units
from booking.domain.entities.appointment import Appointment
from booking.domain.entities.booking_state import BookingState, WorkflowStage
from booking.domain.entities.client import Client
from booking.domain.entities.payment import MethodDetails, PaymentOption, PaymentQuote
from booking.domain.entities.service import Service
from booking.domain.entities.time_slot import TimeSlot


@dataclass(frozen=True)
class StepResult:
    action: str
    updated_state: BookingState
    error_kind: str | None = None
    error_message: str | None = None
    field_errors: dict[str, str] = field(default_factory=dict)
    appointment: Appointment | None = None
    slots: list[TimeSlot] | None = None
    quote: PaymentQuote | None = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None


class BookingWorkflow:
    """
    Service -> Slot -> Client -> Payment, one frozen BookingState per step.

    Operations never raise for user-recoverable problems; they return a StepResult
    carrying the error kind and the state the user should continue from.
    """

    def __init__(
        self,
        catalog: ServiceCatalogPort,
        availability: AvailabilityEngine,
        ledger: BookingLedgerPort,
        gateway: PaymentGatewayPort,
        clients: ClientDirectoryPort,
        notifier: NotifierPort,
        clock: Clock,
        deposit_percentage: float = 30.0,
        currency: str = "EUR",
        checkout_timeout_minutes: int = 10,
        reminder_offsets: list[timedelta] | None = None,
        phone_pattern: str = DEFAULT_PHONE_PATTERN,
        slot_window_days: int = 14,
    ) -> None:
        self._catalog = catalog
        self._availability = availability
        self._ledger = ledger
        self._gateway = gateway
        self._clients = clients
        self._notifier = notifier
        self._clock = clock
        self._deposit_percentage = deposit_percentage
        self._currency = currency
        self._checkout_timeout = timedelta(minutes=checkout_timeout_minutes)
        self._reminder_offsets = list(reminder_offsets or [])
        self._phone_pattern = phone_pattern
        self._slot_window_days = slot_window_days
        self._logger = logging.getLogger(__name__)

    def start(self, session_id: str | None = None) -> StepResult:
        state = BookingState(session_id=session_id or uuid.uuid4().hex, updated_at=self._clock())
        return StepResult(action="select_service", updated_state=state)

    def select_service(self, state: BookingState, service_id: str) -> StepResult:
        if state.stage is not WorkflowStage.SERVICE:
            return self._invalid(state, "select_service", "Go back to the service step to change the service")
        try:
            service = self._catalog.get_by_id(service_id)
        except BookingError as e:
            return self._failed(state, "select_service", e)
        if not service.is_active:
            return self._failed(
                state,
                "select_service",
                ValidationError("Service is not bookable", field_errors={"service_id": "inactive"}),
            )

        selections = state.selections
        if selections.service_id != service.id:
            state = self._drop_reservation(state)
            selections = replace(selections, service_id=service.id, slot=None)
        return StepResult(action="service_selected", updated_state=self._touch(state, selections=selections))

    def select_slot(self, state: BookingState, slot_date: date, start_time: time) -> StepResult:
        if state.stage is not WorkflowStage.SLOT:
            return self._invalid(state, "select_slot", "Go back to the slot step to change the slot")
        service = self._catalog.get_by_id(state.selections.service_id)

        current = state.selections.slot
        if current is not None and current.date == slot_date and current.start_time == start_time:
            return StepResult(action="slot_selected", updated_state=state)
        state = self._drop_reservation(state)

        try:
            candidates = self._availability.slots(service, slot_date, slot_date)
        except LedgerUnavailable as e:
            return self._failed(state, "select_slot", e)
        slot = next((s for s in candidates if s.start_time == start_time), None)
        if slot is None:
            return self._failed(
                state,
                "select_slot",
                ValidationError("Not a bookable slot", field_errors={"slot": "outside working hours"}),
            )
        if not slot.is_available:
            return self._back_to_slot(state, service, SlotConflict("This slot is no longer available"), lost=slot)

        selections = replace(state.selections, slot=slot)
        return StepResult(action="slot_selected", updated_state=self._touch(state, selections=selections))

    def submit_client(self, state: BookingState, client: Client, consent_accepted: bool) -> StepResult:
        if state.stage is not WorkflowStage.CLIENT:
            return self._invalid(state, "submit_client", "Contact details are collected at the client step")
        selections = replace(state.selections, client=client, consent_accepted=consent_accepted)
        # Keep what was typed even when it does not validate.
        state = self._touch(state, selections=selections)
        errors = client_errors(client, consent_accepted, self._phone_pattern)
        if errors:
            return self._failed(
                state,
                "submit_client",
                ValidationError("Invalid contact details", field_errors=errors),
            )
        return StepResult(action="client_submitted", updated_state=state)

    def choose_payment_option(self, state: BookingState, option: PaymentOption) -> StepResult:
        if state.stage is not WorkflowStage.PAYMENT:
            return self._invalid(state, "choose_payment_option", "Payment is chosen at the payment step")
        service = self._catalog.get_by_id(state.selections.service_id)
        selections = replace(state.selections, payment_option=option)
        return StepResult(
            action="payment_option_selected",
            updated_state=self._touch(state, selections=selections),
            quote=quote(service.price, option, self._deposit_percentage),
        )

    def can_advance(self, state: BookingState) -> bool:
        selections = state.selections
        if state.stage is WorkflowStage.SERVICE:
            if selections.service_id is None:
                return False
            return any(s.id == selections.service_id for s in self._catalog.list_active())
        if state.stage is WorkflowStage.SLOT:
            return selections.slot is not None
        if state.stage is WorkflowStage.CLIENT:
            return not client_errors(selections.client, selections.consent_accepted, self._phone_pattern)
        if state.stage is WorkflowStage.PAYMENT:
            return state.reservation is not None and selections.payment_option is not None
        return False

    def advance(self, state: BookingState, method_details: MethodDetails | None = None) -> StepResult:
        if state.is_completed:
            return self._invalid(state, "advance", "Booking is already completed")

        if state.stage in (WorkflowStage.CLIENT, WorkflowStage.PAYMENT) and self._checkout_expired(state):
            return self._timeout(state)

        if not self.can_advance(state):
            return self._failed(state, "advance", self._missing(state))

        if state.stage is WorkflowStage.SERVICE:
            service = self._catalog.get_by_id(state.selections.service_id)
            next_state = self._touch(state, stage=WorkflowStage.SLOT)
            try:
                slots = self._fresh_slots(service)
            except LedgerUnavailable as e:
                return self._failed(next_state, "select_slot", e)
            return StepResult(action="select_slot", updated_state=next_state, slots=slots)

        if state.stage is WorkflowStage.SLOT:
            return self._reserve(state)

        if state.stage is WorkflowStage.CLIENT:
            return StepResult(
                action="select_payment",
                updated_state=self._touch(state, stage=WorkflowStage.PAYMENT),
            )

        return self._checkout(state, method_details)

    def back(self, state: BookingState) -> StepResult:
        if state.is_completed:
            return self._invalid(state, "back", "Booking is already completed")
        if state.stage is WorkflowStage.SERVICE:
            return StepResult(action="select_service", updated_state=state)
        previous = WorkflowStage(state.stage - 1)
        return StepResult(action=f"back_to_{previous.name.lower()}", updated_state=self._touch(state, stage=previous))

    def abandon(self, state: BookingState) -> StepResult:
        if state.reservation is not None and not state.is_completed:
            self._release(state)
        self._logger.info("Booking abandoned", extra={"session_id": state.session_id})
        return StepResult(
            action="abandoned",
            updated_state=BookingState(session_id=state.session_id, updated_at=self._clock()),
        )

    def _reserve(self, state: BookingState) -> StepResult:
        slot = state.selections.slot
        service = self._catalog.get_by_id(state.selections.service_id)

        if state.reservation is not None and self._ledger.is_held(state.reservation.token):
            return StepResult(
                action="enter_client",
                updated_state=self._touch(state, stage=WorkflowStage.CLIENT),
            )

        try:
            reservation = self._ledger.reserve(service.id, slot.date, slot.start_time, slot.end_time)
        except (SlotConflict, ValidationError) as e:
            return self._back_to_slot(state, service, e, lost=slot)
        except LedgerUnavailable as e:
            return self._failed(state, "advance", e)

        next_state = self._touch(
            state,
            stage=WorkflowStage.CLIENT,
            reservation=reservation,
            checkout_started_at=self._clock(),
        )
        self._logger.info(
            "Slot held for session",
            extra={"session_id": state.session_id, "token": reservation.token, "slot": slot.id},
        )
        return StepResult(action="enter_client", updated_state=next_state)

    def _checkout(self, state: BookingState, method_details: MethodDetails | None) -> StepResult:
        selections = state.selections
        service = self._catalog.get_by_id(selections.service_id)
        payment_quote = quote(service.price, selections.payment_option, self._deposit_percentage)
        token = state.reservation.token

        if not self._ledger.is_held(token):
            return self._back_to_slot(
                state,
                service,
                ReservationExpired("The reservation hold has lapsed, please pick a slot again"),
                lost=None,
            )

        charge_id = None
        if payment_quote.due_now > 0:
            try:
                charge_id = self._charge(state, service, payment_quote, method_details)
            except PaymentFailed as e:
                self._logger.warning(
                    "Payment failed",
                    extra={"session_id": state.session_id, "service_id": service.id, "error": str(e)},
                )
                return self._failed(state, "advance", e)

        try:
            appointment = self._ledger.confirm(token, payment_result_for(payment_quote, charge_id))
        except (ReservationExpired, SlotConflict) as e:
            if charge_id is not None:
                self._refund(charge_id, payment_quote)
            lost = state.selections.slot if isinstance(e, SlotConflict) else None
            return self._back_to_slot(state, service, e, lost=lost)
        except LedgerUnavailable as e:
            if charge_id is not None:
                self._refund(charge_id, payment_quote)
            return self._failed(state, "advance", e)

        appointment = self._after_confirm(appointment, selections.client, service)
        done = self._touch(
            state,
            stage=WorkflowStage.COMPLETED,
            reservation=None,
            appointment_id=appointment.id,
        )
        return StepResult(action="booked", updated_state=done, appointment=appointment, quote=payment_quote)

    def _charge(
        self,
        state: BookingState,
        service: Service,
        payment_quote: PaymentQuote,
        method_details: MethodDetails | None,
    ) -> str:
        charge = self._gateway.create_charge(
            to_minor_units(payment_quote.due_now),
            self._currency,
            {
                "appointment_id": state.reservation.appointment_id,
                "service_id": service.id,
                "payment_option": payment_quote.option.value,
            },
        )
        details = method_details or MethodDetails(receipt_email=state.selections.client.email)
        outcome = self._gateway.confirm_charge(charge.handle, details)
        if not outcome.success:
            raise PaymentFailed(outcome.error or "Payment declined")
        return charge.charge_id

    def _refund(self, charge_id: str, payment_quote: PaymentQuote) -> None:
        try:
            refunded = self._gateway.refund_charge(charge_id, to_minor_units(payment_quote.due_now))
        except PaymentFailed as e:
            refunded = False
            self._logger.error("Refund request failed", extra={"reason": charge_id, "error": str(e)})
        if not refunded:
            self._logger.error("Charge taken for a lost reservation was not refunded", extra={"reason": charge_id})

    def _after_confirm(self, appointment: Appointment, client: Client, service: Service) -> Appointment:
        """Client upsert and notifications. Failures here never undo the booking."""
        try:
            stored = self._clients.find_by_email(client.email) or self._clients.create(client)
            appointment = self._ledger.assign_client(appointment.id, stored.id)
        except BookingError as e:
            self._logger.error(
                "Client could not be attached",
                extra={"appointment_id": appointment.id, "error": str(e)},
            )
            stored = client

        try:
            self._notifier.send_confirmation(appointment, stored, service)
            if self._reminder_offsets:
                self._notifier.schedule_reminders(appointment, self._reminder_offsets)
        except NotificationFailed as e:
            self._logger.warning(
                "Confirmation notification failed",
                extra={"appointment_id": appointment.id, "error": str(e)},
            )
        return appointment

    def _back_to_slot(
        self,
        state: BookingState,
        service: Service,
        error: BookingError,
        lost: TimeSlot | None,
    ) -> StepResult:
        unavailable = state.unavailable_slot_ids | {lost.id} if lost else state.unavailable_slot_ids
        next_state = self._touch(
            state,
            stage=WorkflowStage.SLOT,
            selections=replace(state.selections, slot=None),
            reservation=None,
            checkout_started_at=None,
            unavailable_slot_ids=unavailable,
        )
        self._logger.info(
            "Returning session to slot selection",
            extra={"session_id": state.session_id, "service_id": service.id, "reason": error.kind},
        )
        try:
            slots = self._fresh_slots(service)
        except LedgerUnavailable:
            slots = None
        return StepResult(
            action="select_slot",
            updated_state=next_state,
            error_kind=error.kind,
            error_message=str(error),
            field_errors=getattr(error, "field_errors", {}),
            slots=slots,
        )

    def _timeout(self, state: BookingState) -> StepResult:
        self._release(state)
        service = self._catalog.get_by_id(state.selections.service_id)
        return self._back_to_slot(
            state,
            service,
            CheckoutTimeout("Checkout took too long, the slot was released"),
            lost=None,
        )

    def _checkout_expired(self, state: BookingState) -> bool:
        if state.checkout_started_at is None:
            return False
        return self._clock() > state.checkout_started_at + self._checkout_timeout

    def _fresh_slots(self, service: Service) -> list[TimeSlot]:
        today = self._clock().date()
        return self._availability.available(service, today, today + timedelta(days=self._slot_window_days))

    def _drop_reservation(self, state: BookingState) -> BookingState:
        if state.reservation is None:
            return state
        self._release(state)
        return replace(state, reservation=None, checkout_started_at=None)

    def _release(self, state: BookingState) -> None:
        try:
            self._ledger.release(state.reservation.token)
        except LedgerUnavailable as e:
            # The sweeper reclaims the hold once it lapses.
            self._logger.warning(
                "Reservation not released",
                extra={"session_id": state.session_id, "token": state.reservation.token, "error": str(e)},
            )

    def _missing(self, state: BookingState) -> ValidationError:
        selections = state.selections
        if state.stage is WorkflowStage.SERVICE:
            return ValidationError("Select an available service", field_errors={"service_id": "required"})
        if state.stage is WorkflowStage.SLOT:
            return ValidationError("Select a time slot", field_errors={"slot": "required"})
        if state.stage is WorkflowStage.CLIENT:
            errors = client_errors(selections.client, selections.consent_accepted, self._phone_pattern)
            return ValidationError("Invalid contact details", field_errors=errors)
        return ValidationError("Select a payment option", field_errors={"payment_option": "required"})

    def _touch(self, state: BookingState, **changes: object) -> BookingState:
        return replace(state, updated_at=self._clock(), **changes)

    def _invalid(self, state: BookingState, action: str, message: str) -> StepResult:
        return self._failed(state, action, InvalidTransition(message))

    def _failed(self, state: BookingState, action: str, error: BookingError) -> StepResult:
        return StepResult(
            action=action,
            updated_state=state,
            error_kind=error.kind,
            error_message=str(error),
            field_errors=getattr(error, "field_errors", {}),
        )
