"""
Tests for durable ledger persistence.
"""

from __future__ import annotations

import json
import tempfile
from datetime import date, time
from pathlib import Path

import pytest

from booking.application.exceptions import LedgerUnavailable, ReservationExpired, SlotConflict
from booking.domain.entities.appointment import AppointmentStatus, PaymentMethod, PaymentStatus
from booking.domain.entities.payment import PaymentResult
from booking.infrastructure.ledger.json_ledger import JsonBookingLedger
from conftest import FakeClock

MONDAY = date(2026, 3, 2)
DEPOSIT = PaymentResult(status=PaymentStatus.PARTIAL, amount=45.0, method=PaymentMethod.CARD, charge_id="ch_9")


def test_confirmed_appointment_survives_restart():
    """Test that a confirmed appointment is reloaded with every field intact."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = str(Path(tmpdir) / "ledger.json")
        clock = FakeClock()
        ledger = JsonBookingLedger(clock, data_path=path)
        token = ledger.reserve("2", MONDAY, time(9, 0), time(11, 0))
        confirmed = ledger.confirm(token.token, DEPOSIT)
        ledger.assign_client(confirmed.id, "client-1")

        reloaded = JsonBookingLedger(clock, data_path=path)
        appointment = reloaded.get(confirmed.id)

        assert appointment.status is AppointmentStatus.CONFIRMED
        assert appointment.payment_status is PaymentStatus.PARTIAL
        assert appointment.payment_amount == 45.0
        assert appointment.payment_method is PaymentMethod.CARD
        assert appointment.charge_id == "ch_9"
        assert appointment.client_id == "client-1"
        assert appointment.start_time == time(9, 0)
        assert appointment.reminders_sent == (False, False)


def test_held_reservation_survives_restart():
    """Test that a hold still blocks the slot and can be confirmed after a restart."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = str(Path(tmpdir) / "ledger.json")
        clock = FakeClock()
        token = JsonBookingLedger(clock, data_path=path).reserve("2", MONDAY, time(9, 0), time(11, 0))

        reloaded = JsonBookingLedger(clock, data_path=path)

        assert reloaded.is_held(token.token)
        with pytest.raises(SlotConflict):
            reloaded.reserve("2", MONDAY, time(10, 0), time(12, 0))
        assert reloaded.confirm(token.token, DEPOSIT).status is AppointmentStatus.CONFIRMED


def test_expiry_is_persisted():
    """Test that a hold finalized as expired stays expired after a restart."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = str(Path(tmpdir) / "ledger.json")
        clock = FakeClock()
        ledger = JsonBookingLedger(clock, data_path=path, hold_minutes=15)
        token = ledger.reserve("2", MONDAY, time(9, 0), time(11, 0))
        clock.advance(16)
        assert ledger.sweep_expired() == 1

        reloaded = JsonBookingLedger(clock, data_path=path)

        assert reloaded.list_active("2", MONDAY, MONDAY) == []
        with pytest.raises(ReservationExpired):
            reloaded.confirm(token.token, DEPOSIT)


def test_file_is_written_atomically():
    """Test that writes leave a complete JSON document and no temp file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "nested" / "ledger.json"
        ledger = JsonBookingLedger(FakeClock(), data_path=str(path))
        ledger.reserve("1", MONDAY, time(9, 0), time(9, 30))

        data = json.loads(path.read_text(encoding="utf-8"))

        assert data["version"] == 1
        assert len(data["appointments"]) == 1
        assert data["holds"][0]["state"] == "held"
        assert not path.with_suffix(".json.tmp").exists()


def test_corrupt_file_is_not_silently_replaced():
    """Test that an unreadable ledger file raises instead of starting empty."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "ledger.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(json.JSONDecodeError):
            JsonBookingLedger(FakeClock(), data_path=str(path))
        assert path.read_text(encoding="utf-8") == "{not json"


def test_failed_write_is_rolled_back():
    """Test that a write the disk refuses leaves memory unchanged and raises LedgerUnavailable."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "ledger.json"
        ledger = JsonBookingLedger(FakeClock(), data_path=str(path))
        # A directory in the way makes the final rename fail.
        path.mkdir()

        with pytest.raises(LedgerUnavailable):
            ledger.reserve("1", MONDAY, time(9, 0), time(9, 30))

        assert ledger.list_active("1", MONDAY, MONDAY) == []
        assert not path.with_suffix(".json.tmp").exists()
