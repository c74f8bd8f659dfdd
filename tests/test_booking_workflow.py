from __future__ import annotations

from datetime import date, time, timedelta

from booking.application.use_cases.booking import BookingWorkflow
from booking.domain.entities.appointment import AppointmentStatus, PaymentMethod, PaymentStatus
from booking.domain.entities.booking_state import WorkflowStage
from booking.domain.entities.payment import PaymentOption
from booking.infrastructure.notifications.mock_notifier import MockNotifier
from booking.infrastructure.payments.mock_gateway import MockPaymentGateway
from conftest import make_client

MONDAY = date(2026, 3, 2)
AUDIT = "2"  # 120 minutes, 150
FREE_CONSULTATION = "1"


def _to_slot(workflow, service_id=AUDIT):
    state = workflow.start("session-1").updated_state
    state = workflow.select_service(state, service_id).updated_state
    return workflow.advance(state)


def _to_payment(workflow, service_id=AUDIT, start=time(9, 0)):
    state = _to_slot(workflow, service_id).updated_state
    state = workflow.select_slot(state, MONDAY, start).updated_state
    state = workflow.advance(state).updated_state
    state = workflow.submit_client(state, make_client(), consent_accepted=True).updated_state
    return workflow.advance(state).updated_state


def _pay(workflow, state, option):
    state = workflow.choose_payment_option(state, option).updated_state
    return workflow.advance(state)


def _variant(catalog, engine, ledger, clients, clock, gateway=None, notifier=None, **kwargs):
    return BookingWorkflow(
        catalog=catalog,
        availability=engine,
        ledger=ledger,
        gateway=gateway or MockPaymentGateway(),
        clients=clients,
        notifier=notifier or MockNotifier(),
        clock=clock,
        **kwargs,
    )


def test_stages_advance_in_order(workflow):
    """Test that the workflow moves through every stage in order."""
    result = _to_slot(workflow)

    assert result.ok
    assert result.updated_state.stage is WorkflowStage.SLOT
    assert result.slots
    assert all(s.is_available for s in result.slots)

    state = _to_payment(workflow)
    assert state.stage is WorkflowStage.PAYMENT
    assert state.reservation is not None
    assert workflow.can_advance(state) is False


def test_deposit_booking_end_to_end(workflow, gateway, clients, notifier):
    """Test that a deposit booking charges, confirms, stores the client and notifies."""
    state = _to_payment(workflow)

    chosen = workflow.choose_payment_option(state, PaymentOption.DEPOSIT)
    assert (chosen.quote.due_now, chosen.quote.remainder) == (45, 105)

    result = workflow.advance(chosen.updated_state)

    assert result.ok
    assert result.action == "booked"
    assert result.updated_state.stage is WorkflowStage.COMPLETED
    appointment = result.appointment
    assert appointment.status is AppointmentStatus.CONFIRMED
    assert appointment.payment_status is PaymentStatus.PARTIAL
    assert appointment.payment_amount == 45
    assert appointment.payment_method is PaymentMethod.CARD
    assert gateway.charge(appointment.charge_id)["amount"] == 4500
    assert appointment.client_id == clients.find_by_email("camille.martin@example.com").id
    assert result.updated_state.appointment_id == appointment.id
    assert notifier.confirmations == [(appointment.id, "camille.martin@example.com")]
    assert notifier.reminders == [
        (appointment.id, appointment.start - timedelta(days=2)),
        (appointment.id, appointment.start - timedelta(hours=2)),
    ]


def test_full_and_onsite_payments(workflow, gateway):
    """Test that full payment charges everything and onsite charges nothing."""
    full = _pay(workflow, _to_payment(workflow, start=time(9, 0)), PaymentOption.FULL).appointment
    assert (full.payment_status, full.payment_amount) == (PaymentStatus.PAID, 150)

    onsite = _pay(workflow, _to_payment(workflow, start=time(14, 0)), PaymentOption.ONSITE).appointment
    assert (onsite.payment_status, onsite.payment_method) == (PaymentStatus.PENDING, PaymentMethod.CASH)
    assert onsite.charge_id is None
    assert gateway.charge("mock_charge_2") is None


def test_free_service_skips_the_gateway(workflow, gateway):
    """Test that a free service is booked without touching the gateway."""
    result = _pay(workflow, _to_payment(workflow, FREE_CONSULTATION), PaymentOption.FULL)

    assert result.appointment.payment_status is PaymentStatus.PAID
    assert result.appointment.payment_amount == 0
    assert gateway.charge("mock_charge_1") is None


def test_cannot_advance_without_selection(workflow):
    """Test that advance refuses to move without the current step's selection."""
    state = workflow.start().updated_state

    result = workflow.advance(state)

    assert result.error_kind == "validation"
    assert result.updated_state.stage is WorkflowStage.SERVICE
    assert workflow.select_slot(state, MONDAY, time(9, 0)).error_kind == "invalid_transition"


def test_unknown_service_is_reported(workflow):
    """Test that selecting an unknown service reports not_found."""
    result = workflow.select_service(workflow.start().updated_state, "missing")

    assert result.error_kind == "not_found"


def test_slot_taken_before_reserve_returns_to_slot_with_fresh_availability(workflow, ledger):
    """Test that losing the slot before reserve goes back with fresh slots."""
    state = _to_slot(workflow).updated_state
    state = workflow.select_slot(state, MONDAY, time(9, 0)).updated_state
    ledger.reserve(AUDIT, MONDAY, time(9, 0), time(11, 0))

    result = workflow.advance(state)

    assert result.error_kind == "conflict"
    assert result.updated_state.stage is WorkflowStage.SLOT
    assert result.updated_state.selections.slot is None
    assert "2026-03-02-2-09:00" in result.updated_state.unavailable_slot_ids
    assert all(s.start_time != time(9, 0) or s.date != MONDAY for s in result.slots)


def test_selecting_an_unavailable_or_unknown_slot(workflow, ledger):
    """Test that taken and off-schedule slots cannot be selected."""
    state = _to_slot(workflow).updated_state
    ledger.reserve(AUDIT, MONDAY, time(14, 0), time(16, 0))

    assert workflow.select_slot(state, MONDAY, time(14, 0)).error_kind == "conflict"
    assert workflow.select_slot(state, MONDAY, time(13, 0)).error_kind == "validation"


def test_invalid_client_keeps_the_typed_data(workflow):
    """Test that invalid contact details are reported and kept for correction."""
    state = _to_slot(workflow).updated_state
    state = workflow.select_slot(state, MONDAY, time(9, 0)).updated_state
    state = workflow.advance(state).updated_state

    result = workflow.submit_client(state, make_client(email="not-an-email"), consent_accepted=False)

    assert set(result.field_errors) == {"email", "consent"}
    assert result.updated_state.stage is WorkflowStage.CLIENT
    assert result.updated_state.selections.client.email == "not-an-email"
    assert workflow.can_advance(result.updated_state) is False
    assert workflow.advance(result.updated_state).error_kind == "validation"


def test_declined_payment_stays_on_payment(catalog, engine, ledger, clients, clock):
    """Test that a declined card keeps the session on payment with its hold."""
    workflow = _variant(catalog, engine, ledger, clients, clock, gateway=MockPaymentGateway(decline_reason="card declined"))
    state = _to_payment(workflow)

    result = _pay(workflow, state, PaymentOption.FULL)

    assert result.error_kind == "payment_failed"
    assert result.error_message == "card declined"
    assert result.updated_state.stage is WorkflowStage.PAYMENT
    assert ledger.is_held(state.reservation.token)


def test_lost_hold_before_charge_returns_to_slot(workflow, ledger, gateway):
    """Test that a hold lost before charging sends the session back without a charge."""
    state = _to_payment(workflow)
    ledger.release(state.reservation.token)

    result = _pay(workflow, state, PaymentOption.FULL)

    assert result.error_kind == "expired"
    assert result.updated_state.stage is WorkflowStage.SLOT
    assert result.updated_state.reservation is None
    assert gateway.charge("mock_charge_1") is None


def test_hold_lapsing_during_payment_refunds_the_charge(catalog, engine, ledger, clients, clock):
    """Test that a hold lapsing mid-payment refunds the charge."""
    class SlowGateway(MockPaymentGateway):
        def confirm_charge(self, handle, method_details):
            clock.advance(16)
            return super().confirm_charge(handle, method_details)

    gateway = SlowGateway()
    workflow = _variant(catalog, engine, ledger, clients, clock, gateway=gateway, checkout_timeout_minutes=30)

    result = _pay(workflow, _to_payment(workflow), PaymentOption.FULL)

    assert result.error_kind == "expired"
    assert result.updated_state.stage is WorkflowStage.SLOT
    assert gateway.refunds == [("mock_charge_1", 15000)]
    assert gateway.charge("mock_charge_1")["status"] == "refunded"


def test_checkout_timeout_releases_the_hold(workflow, ledger, clock):
    """Test that an overdue checkout releases the hold."""
    state = _to_payment(workflow)
    token = state.reservation.token
    clock.advance(11)

    result = _pay(workflow, state, PaymentOption.ONSITE)

    assert result.error_kind == "timeout"
    assert result.updated_state.stage is WorkflowStage.SLOT
    assert not ledger.is_held(token)
    assert ledger.list_active(AUDIT, MONDAY, MONDAY) == []


def test_back_keeps_data_and_reuses_the_hold(workflow):
    """Test that going back keeps the selections and the hold."""
    state = _to_payment(workflow)
    token = state.reservation.token

    state = workflow.back(state).updated_state
    assert state.stage is WorkflowStage.CLIENT
    assert state.selections.client == make_client()

    state = workflow.back(state).updated_state
    assert state.stage is WorkflowStage.SLOT
    assert state.selections.slot.start_time == time(9, 0)

    state = workflow.advance(state).updated_state
    assert state.stage is WorkflowStage.CLIENT
    assert state.reservation.token == token


def test_changing_the_slot_releases_the_old_hold(workflow, ledger):
    """Test that picking another slot frees the previous hold."""
    state = _to_payment(workflow)
    old_token = state.reservation.token
    state = workflow.back(workflow.back(state).updated_state).updated_state

    result = workflow.select_slot(state, MONDAY, time(14, 0))

    assert result.ok
    assert result.updated_state.reservation is None
    assert not ledger.is_held(old_token)


def test_abandon_releases_the_hold(workflow, ledger):
    """Test that abandoning a session frees its hold."""
    state = _to_payment(workflow)

    result = workflow.abandon(state)

    assert result.action == "abandoned"
    assert result.updated_state.stage is WorkflowStage.SERVICE
    assert not ledger.is_held(state.reservation.token)


def test_notification_failure_never_rolls_back(catalog, engine, ledger, clients, clock):
    """Test that a failed notification leaves the booking confirmed."""
    workflow = _variant(catalog, engine, ledger, clients, clock, notifier=MockNotifier(fail=True))

    result = _pay(workflow, _to_payment(workflow), PaymentOption.ONSITE)

    assert result.ok
    assert ledger.get(result.appointment.id).status is AppointmentStatus.CONFIRMED


def test_returning_client_is_reused(workflow, clients):
    """Test that a returning client's record is reused."""
    first = _pay(workflow, _to_payment(workflow, start=time(9, 0)), PaymentOption.ONSITE).appointment
    second = _pay(workflow, _to_payment(workflow, start=time(14, 0)), PaymentOption.ONSITE).appointment

    assert first.client_id == second.client_id


def test_completed_session_cannot_move(workflow):
    """Test that a completed session rejects further steps."""
    done = _pay(workflow, _to_payment(workflow), PaymentOption.ONSITE).updated_state

    assert workflow.advance(done).error_kind == "invalid_transition"
    assert workflow.back(done).error_kind == "invalid_transition"


def test_failed_ledger_write_on_confirm_refunds_the_charge(workflow, ledger, gateway, monkeypatch):
    """Test that a confirm which cannot be saved is rolled back and its charge refunded."""
    state = _to_payment(workflow)

    def disk_full():
        raise OSError("disk full")

    monkeypatch.setattr(ledger, "_persist", disk_full)
    result = _pay(workflow, state, PaymentOption.FULL)

    assert result.error_kind == "unavailable"
    assert result.updated_state.stage is WorkflowStage.PAYMENT
    assert gateway.refunds == [("mock_charge_1", 15000)]
    assert ledger.get(state.reservation.appointment_id).status is AppointmentStatus.PENDING
    assert ledger.is_held(state.reservation.token)
