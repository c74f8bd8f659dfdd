from __future__ import annotations

import pytest

from booking.application.utils.client_validation import client_errors
from conftest import make_client


def test_valid_client_with_spaced_french_phone():
    """Test that a spaced French phone number is accepted."""
    assert client_errors(make_client(), consent_accepted=True) == {}
    assert client_errors(make_client(phone="+33612345678"), consent_accepted=True) == {}


def test_every_missing_field_is_reported():
    """Test that every blank field and missing consent is reported."""
    blank = make_client(first_name=" ", last_name="", email="", phone="")

    errors = client_errors(blank, consent_accepted=False)

    assert set(errors) == {"first_name", "last_name", "email", "phone", "consent"}


@pytest.mark.parametrize("email", ["plain", "a@b", "a b@c.fr", "@example.com"])
def test_invalid_email(email):
    """Test that malformed emails are reported."""
    assert "email" in client_errors(make_client(email=email), consent_accepted=True)


@pytest.mark.parametrize("phone", ["0012345678", "06123", "+44 7700 900123", "abcdefghij"])
def test_invalid_phone(phone):
    """Test that malformed phone numbers are reported."""
    assert "phone" in client_errors(make_client(phone=phone), consent_accepted=True)


def test_phone_pattern_is_configurable():
    """Test that the phone pattern can be swapped."""
    errors = client_errors(make_client(phone="+44 7700 900123"), True, phone_pattern=r"^\+44\d{10}$")

    assert errors == {}


def test_missing_client_is_reported():
    """Test that missing contact details yield a single client error."""
    assert client_errors(None, consent_accepted=True) == {"client": "Contact details are required"}
