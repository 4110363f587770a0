"""Unit tests for JWT issuing/validation and bcrypt password hashing."""

from collections.abc import Iterator
from datetime import timedelta
from unittest.mock import patch

import pytest
from jose import jwt

from config.settings import settings
from src.mp_common.errors import InvalidCredentialsError, InvalidRefreshTokenError
from src.mp_gateway.auth.jwt_handler import (
    ACCESS,
    REFRESH,
    TokenClaims,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.mp_gateway.auth.password import hash_password, needs_rehash, verify_password

ADDRESS = "0x" + "5" * 40


class TestTokens:
    @pytest.mark.parametrize(
        ("issue", "token_type"),
        [(create_access_token, ACCESS), (create_refresh_token, REFRESH)],
    )
    def test_claims(self, issue, token_type: str) -> None:
        claims = jwt.get_unverified_claims(issue("user-42", ADDRESS))
        assert claims["sub"] == "user-42"
        assert claims["addr"] == ADDRESS
        assert claims["type"] == token_type
        assert claims["exp"] > claims["iat"]

    def test_round_trip_access(self) -> None:
        claims = decode_token(create_access_token("user-42", ADDRESS), expected_type=ACCESS)
        assert claims == TokenClaims(user_id="user-42", address=ADDRESS, token_type=ACCESS)

    def test_access_token_is_not_a_refresh_token(self) -> None:
        with pytest.raises(InvalidRefreshTokenError):
            decode_token(create_access_token("user-42", ADDRESS), expected_type=REFRESH)

    def test_refresh_token_is_not_an_access_token(self) -> None:
        with pytest.raises(InvalidCredentialsError):
            decode_token(create_refresh_token("user-42", ADDRESS), expected_type=ACCESS)

    def test_expired_access_token(self) -> None:
        with patch("src.mp_gateway.auth.jwt_handler._ACCESS_EXPIRE", timedelta(seconds=-1)):
            token = create_access_token("user-42", ADDRESS)
        with pytest.raises(InvalidCredentialsError):
            decode_token(token, expected_type=ACCESS)

    def test_signed_with_other_secret(self) -> None:
        forged = jwt.encode(
            {"sub": "user-42", "addr": ADDRESS, "type": ACCESS}, "not-the-secret", "HS256"
        )
        with pytest.raises(InvalidCredentialsError):
            decode_token(forged, expected_type=ACCESS)

    def test_token_without_address_rejected(self) -> None:
        legacy = jwt.encode(
            {"sub": "user-42", "type": ACCESS}, settings.JWT_SECRET, settings.JWT_ALGORITHM
        )
        with pytest.raises(InvalidCredentialsError):
            decode_token(legacy, expected_type=ACCESS)


class TestPasswords:
    @pytest.fixture(autouse=True)
    def cheap_rounds(self) -> Iterator[None]:
        with patch.object(settings, "BCRYPT_ROUNDS", 4):
            yield

    def test_verify(self) -> None:
        hashed = hash_password("Marketpl4ce")
        assert hashed != "Marketpl4ce"
        assert verify_password("Marketpl4ce", hashed) is True
        assert verify_password("marketpl4ce", hashed) is False

    def test_salted(self) -> None:
        assert hash_password("Marketpl4ce") != hash_password("Marketpl4ce")

    def test_rehash_when_cost_changes(self) -> None:
        hashed = hash_password("Marketpl4ce")
        assert needs_rehash(hashed) is False
        with patch.object(settings, "BCRYPT_ROUNDS", 5):
            assert needs_rehash(hashed) is True

    def test_unparseable_hash_needs_rehash(self) -> None:
        assert needs_rehash("plain") is True
