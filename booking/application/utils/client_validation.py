from __future__ import annotations

import re

from booking.domain.entities.client import Client

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DEFAULT_PHONE_PATTERN = r"^(?:\+33|0)[1-9]\d{8}$"


def normalize_phone(phone: str) -> str:
    return re.sub(r"\s+", "", phone)


def client_errors(
    client: Client | None,
    consent_accepted: bool,
    phone_pattern: str = DEFAULT_PHONE_PATTERN,
) -> dict[str, str]:
    """Return field -> message for every problem with the submitted contact details."""
    errors: dict[str, str] = {}
    if client is None:
        return {"client": "Contact details are required"}

    if not client.first_name.strip():
        errors["first_name"] = "First name is required"
    if not client.last_name.strip():
        errors["last_name"] = "Last name is required"

    if not client.email.strip():
        errors["email"] = "Email is required"
    elif not EMAIL_PATTERN.match(client.email.strip()):
        errors["email"] = "Invalid email format"

    if not client.phone.strip():
        errors["phone"] = "Phone is required"
    elif not re.match(phone_pattern, normalize_phone(client.phone)):
        errors["phone"] = "Invalid phone format"

    if not consent_accepted:
        errors["consent"] = "The privacy policy must be accepted"
    return errors
