"""Unit tests for gateway request schemas."""

import pytest
from pydantic import ValidationError

from src.mp_gateway.user.schemas import RegisterRequest


def _register(**overrides: str) -> RegisterRequest:
    data = {"username": "alice_1", "address": "0x" + "Ab" * 20, "password": "Pass1word"}
    data.update(overrides)
    return RegisterRequest(**data)


def test_address_is_lowercased() -> None:
    assert _register().address == "0x" + "ab" * 20


@pytest.mark.parametrize(
    "address",
    ["0x123", "ab" * 21, "0x" + "g" * 40, "0x" + "a" * 41],
)
def test_malformed_address_rejected(address: str) -> None:
    with pytest.raises(ValidationError):
        _register(address=address)


@pytest.mark.parametrize("password", ["password1", "PASSWORD1", "Password", "Pw1"])
def test_weak_password_rejected(password: str) -> None:
    with pytest.raises(ValidationError):
        _register(password=password)


def test_username_charset() -> None:
    with pytest.raises(ValidationError):
        _register(username="alice smith")


def test_password_over_bcrypt_limit_rejected() -> None:
    # 70 characters but 73 bytes once encoded
    with pytest.raises(ValidationError):
        _register(password="Pass1word" + "é" * 3 + "a" * 58)
