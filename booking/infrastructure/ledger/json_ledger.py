from __future__ import annotations

import json
import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

from booking.application.utils.clock import Clock
from booking.domain.entities.appointment import Appointment, AppointmentStatus, PaymentMethod, PaymentStatus
from booking.domain.entities.reservation import ReservationToken
from booking.infrastructure.ledger.memory_ledger import Hold, MemoryBookingLedger

SCHEMA_VERSION = 1


class JsonBookingLedger(MemoryBookingLedger):
    """
    MemoryBookingLedger whose state survives restarts.
    The whole ledger is rewritten to a temp file and renamed over the old one
    while the lock is still held, so readers of the file never see a partial write.
    """

    def __init__(self, clock: Clock, data_path: str = "./data/ledger.json", **kwargs: Any) -> None:
        super().__init__(clock, **kwargs)
        self._path = Path(data_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._logger = logging.getLogger(__name__)
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            # A corrupted ledger must not be silently replaced by an empty one.
            self._logger.error("Ledger file unreadable", extra={"error": str(e), "reason": str(self._path)})
            raise

        self._appointments = {
            a["id"]: self._deserialize_appointment(a) for a in data.get("appointments", [])
        }
        self._holds = {}
        self._hold_by_appointment = {}
        for raw in data.get("holds", []):
            hold = Hold(reservation=self._deserialize_reservation(raw["reservation"]), state=raw["state"])
            self._holds[hold.reservation.token] = hold
            if hold.reservation.appointment_id in self._appointments:
                self._hold_by_appointment[hold.reservation.appointment_id] = hold.reservation.token

        self._logger.info(
            "Ledger loaded",
            extra={"reason": str(self._path), "count": len(self._appointments)},
        )

    def _persist(self) -> None:
        data = {
            "version": SCHEMA_VERSION,
            "appointments": [self._serialize_appointment(a) for a in self._appointments.values()],
            "holds": [
                {"reservation": self._serialize_reservation(h.reservation), "state": h.state}
                for h in self._holds.values()
            ],
        }
        temp_path = self._path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(self._path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            raise

    def _serialize_appointment(self, appointment: Appointment) -> dict[str, Any]:
        return {
            "id": appointment.id,
            "service_id": appointment.service_id,
            "client_id": appointment.client_id,
            "date": appointment.date.isoformat(),
            "start_time": appointment.start_time.strftime("%H:%M"),
            "end_time": appointment.end_time.strftime("%H:%M"),
            "status": appointment.status.value,
            "payment_status": appointment.payment_status.value,
            "payment_amount": appointment.payment_amount,
            "payment_method": appointment.payment_method.value if appointment.payment_method else None,
            "charge_id": appointment.charge_id,
            "reminders_sent": list(appointment.reminders_sent),
            "notes": appointment.notes,
            "cancellation_reason": appointment.cancellation_reason,
            "created_at": appointment.created_at.isoformat(),
            "updated_at": appointment.updated_at.isoformat(),
        }

    def _deserialize_appointment(self, data: dict[str, Any]) -> Appointment:
        method = data.get("payment_method")
        return Appointment(
            id=data["id"],
            service_id=data["service_id"],
            client_id=data.get("client_id"),
            date=date.fromisoformat(data["date"]),
            start_time=time.fromisoformat(data["start_time"]),
            end_time=time.fromisoformat(data["end_time"]),
            status=AppointmentStatus(data["status"]),
            payment_status=PaymentStatus(data.get("payment_status", PaymentStatus.PENDING.value)),
            payment_amount=float(data.get("payment_amount", 0.0)),
            payment_method=PaymentMethod(method) if method else None,
            charge_id=data.get("charge_id"),
            reminders_sent=tuple(bool(flag) for flag in data.get("reminders_sent", [])),
            notes=data.get("notes"),
            cancellation_reason=data.get("cancellation_reason"),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )

    def _serialize_reservation(self, reservation: ReservationToken) -> dict[str, Any]:
        return {
            "token": reservation.token,
            "appointment_id": reservation.appointment_id,
            "service_id": reservation.service_id,
            "date": reservation.date.isoformat(),
            "start_time": reservation.start_time.strftime("%H:%M"),
            "end_time": reservation.end_time.strftime("%H:%M"),
            "expires_at": reservation.expires_at.isoformat(),
        }

    def _deserialize_reservation(self, data: dict[str, Any]) -> ReservationToken:
        return ReservationToken(
            token=data["token"],
            appointment_id=data["appointment_id"],
            service_id=data["service_id"],
            date=date.fromisoformat(data["date"]),
            start_time=time.fromisoformat(data["start_time"]),
            end_time=time.fromisoformat(data["end_time"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )
