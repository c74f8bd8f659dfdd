from __future__ import annotations

import threading
from datetime import time

import pytest

from booking.application.exceptions import InvalidTransition, NotFound
from booking.application.use_cases.cancel_appointment import CancelAppointmentUseCase
from booking.domain.entities.appointment import AppointmentStatus, PaymentStatus
from booking.domain.entities.payment import PaymentOption
from test_booking_workflow import _pay, _to_payment


@pytest.fixture
def cancel(ledger, catalog, clients, notifier, gateway) -> CancelAppointmentUseCase:
    return CancelAppointmentUseCase(ledger, catalog, clients, notifier, gateway)


def test_cancel_refunds_and_notifies(workflow, cancel, gateway, notifier):
    """Test that cancelling a paid booking refunds it and notifies the client."""
    booked = _pay(workflow, _to_payment(workflow), PaymentOption.FULL).appointment

    cancelled = cancel.execute(booked.id, "schedule change")

    assert cancelled.status is AppointmentStatus.CANCELLED
    assert cancelled.payment_status is PaymentStatus.REFUNDED
    assert gateway.refunds == [(booked.charge_id, 15000)]
    assert notifier.cancellations == [(booked.id, "schedule change")]


def test_cancel_twice_is_a_no_op(workflow, cancel, gateway, notifier):
    """Test that a second cancel neither refunds nor notifies again."""
    booked = _pay(workflow, _to_payment(workflow), PaymentOption.DEPOSIT).appointment
    cancel.execute(booked.id)

    again = cancel.execute(booked.id, "again")

    assert again.status is AppointmentStatus.CANCELLED
    assert len(gateway.refunds) == 1
    assert len(notifier.cancellations) == 1


def test_cancel_onsite_booking_charges_nothing(workflow, cancel, gateway):
    """Test that cancelling an onsite booking triggers no refund."""
    booked = _pay(workflow, _to_payment(workflow, start=time(14, 0)), PaymentOption.ONSITE).appointment

    cancelled = cancel.execute(booked.id)

    assert cancelled.payment_status is PaymentStatus.PENDING
    assert gateway.refunds == []


def test_cancel_errors_propagate(workflow, cancel, ledger):
    """Test that unknown and completed appointments cannot be cancelled."""
    with pytest.raises(NotFound):
        cancel.execute("missing")

    booked = _pay(workflow, _to_payment(workflow), PaymentOption.ONSITE).appointment
    ledger.complete(booked.id)
    with pytest.raises(InvalidTransition):
        cancel.execute(booked.id)


def test_racing_cancels_refund_and_notify_once(workflow, cancel, gateway, notifier):
    """Test that two racing cancels of one paid booking refund and notify only once."""
    booked = _pay(workflow, _to_payment(workflow), PaymentOption.FULL).appointment
    barrier = threading.Barrier(2)
    results = []

    def worker(reason):
        barrier.wait()
        results.append(cancel.execute(booked.id, reason))

    threads = [threading.Thread(target=worker, args=(reason,)) for reason in ("first", "second")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert len(results) == 2
    assert all(a.status is AppointmentStatus.CANCELLED for a in results)
    assert gateway.refunds == [(booked.charge_id, 15000)]
    assert len(notifier.cancellations) == 1
