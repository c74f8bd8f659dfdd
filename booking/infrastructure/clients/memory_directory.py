from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace

from booking.application.exceptions import NotFound
from booking.application.ports.client_directory import ClientDirectoryPort
from booking.domain.entities.client import Client, normalize_email


class MemoryClientDirectory(ClientDirectoryPort):
    def __init__(self) -> None:
        self._clients: dict[str, Client] = {}
        self._by_email: dict[str, str] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def find_by_email(self, email: str) -> Client | None:
        with self._lock:
            client_id = self._by_email.get(normalize_email(email))
            return self._clients.get(client_id) if client_id else None

    def create(self, client: Client) -> Client:
        with self._lock:
            key = client.email_key
            if key in self._by_email:
                # Two sessions can race past find_by_email with the same address.
                return self._clients[self._by_email[key]]
            created = replace(client, id=client.id or uuid.uuid4().hex)
            self._clients[created.id] = created
            self._by_email[key] = created.id
        self._logger.info("Client created", extra={"client_id": created.id})
        return created

    def get(self, client_id: str) -> Client:
        with self._lock:
            client = self._clients.get(client_id)
        if client is None:
            raise NotFound(f"Client {client_id} not found")
        return client
