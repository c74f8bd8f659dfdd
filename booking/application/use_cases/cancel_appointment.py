from __future__ import annotations

import logging

from booking.application.exceptions import NotFound, NotificationFailed
from booking.application.ports.booking_ledger import BookingLedgerPort
from booking.application.ports.client_directory import ClientDirectoryPort
from booking.application.ports.notifier import NotifierPort
from booking.application.ports.payment_gateway import PaymentGatewayPort
from booking.application.ports.service_catalog import ServiceCatalogPort
from booking.application.utils.payments import to_minor_units
from booking.domain.entities.appointment import Appointment, PaymentStatus


class CancelAppointmentUseCase:
    """Cancel in the ledger, refund what was charged, then tell the client."""

    def __init__(
        self,
        ledger: BookingLedgerPort,
        catalog: ServiceCatalogPort,
        clients: ClientDirectoryPort,
        notifier: NotifierPort,
        gateway: PaymentGatewayPort,
    ) -> None:
        self._ledger = ledger
        self._catalog = catalog
        self._clients = clients
        self._notifier = notifier
        self._gateway = gateway
        self._logger = logging.getLogger(__name__)

    def execute(self, appointment_id: str, reason: str | None = None) -> Appointment:
        appointment, changed = self._ledger.cancel_active(appointment_id, reason)
        if not changed:
            return appointment

        if appointment.charge_id and appointment.payment_status in (PaymentStatus.PAID, PaymentStatus.PARTIAL):
            if self._gateway.refund_charge(appointment.charge_id, to_minor_units(appointment.payment_amount)):
                appointment = self._ledger.record_payment(appointment.id, PaymentStatus.REFUNDED)
            else:
                self._logger.error(
                    "Refund for cancelled appointment failed",
                    extra={"appointment_id": appointment.id, "reason": appointment.charge_id},
                )

        if appointment.client_id:
            self._notify(appointment, reason)
        return appointment

    def _notify(self, appointment: Appointment, reason: str | None) -> None:
        try:
            client = self._clients.get(appointment.client_id)
            service = self._catalog.get_by_id(appointment.service_id)
            self._notifier.send_cancellation(appointment, client, service, reason)
        except (NotFound, NotificationFailed) as e:
            self._logger.warning(
                "Cancellation notice not sent",
                extra={"appointment_id": appointment.id, "error": str(e)},
            )
