from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Address:
    street: str
    city: str
    postal_code: str
    country: str


@dataclass(frozen=True)
class ClientPreferences:
    language: str = "en"
    timezone: str | None = None
    notifications: bool = True


@dataclass(frozen=True)
class Client:
    first_name: str
    last_name: str
    email: str
    phone: str
    id: str | None = None  # assigned by the client directory
    company: str | None = None
    address: Address | None = None
    preferences: ClientPreferences = ClientPreferences()

    @property
    def email_key(self) -> str:
        return normalize_email(self.email)


def normalize_email(email: str) -> str:
    return email.strip().lower()
