"""
Unit tests for password hashing, JWT helpers and the exception hierarchy.
"""

from datetime import timedelta

import jwt
import pytest

from cureconnect.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CureConnectError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from cureconnect.core.security import (
    JWT_ALGORITHM,
    create_access_token,
    create_user_token,
    decode_access_token,
    extract_bearer_token,
    get_jwt_secret_key,
    get_token_claims,
    hash_password,
    verify_password,
)


@pytest.mark.unit
@pytest.mark.security
class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("secret123")

        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong", hashed)

    def test_missing_or_malformed_hash(self):
        assert not verify_password("secret123", None)
        assert not verify_password("", hash_password("secret123"))
        assert not verify_password("secret123", "not-a-bcrypt-hash")


@pytest.mark.unit
@pytest.mark.security
class TestTokens:
    def test_user_token_claims(self):
        claims = get_token_claims(create_user_token("user-1", "doctor"))

        assert claims["user_id"] == "user-1"
        assert claims["role"] == "doctor"
        assert claims["jti"]
        assert claims["expires_at"].tzinfo is not None

    def test_each_token_gets_its_own_jti(self):
        first = get_token_claims(create_user_token("user-1", "patient"))
        second = get_token_claims(create_user_token("user-1", "patient"))

        assert first["jti"] != second["jti"]

    def test_expired_token(self):
        token = create_access_token(
            {"sub": "user-1", "role": "patient"}, expires_delta=timedelta(seconds=-5)
        )

        assert decode_access_token(token) is None
        assert get_token_claims(token) is None

    def test_token_signed_with_other_key(self):
        token = jwt.encode(
            {"sub": "user-1", "role": "admin", "jti": "x", "exp": 9999999999},
            "some-other-secret-that-is-long-enough",
            algorithm=JWT_ALGORITHM,
        )

        assert get_token_claims(token) is None

    def test_token_missing_role(self):
        token = create_access_token({"sub": "user-1"})

        assert decode_access_token(token) is not None
        assert get_token_claims(token) is None

    @pytest.mark.parametrize(
        "header,expected",
        [
            ("Bearer abc.def", "abc.def"),
            ("Bearer   ", None),
            ("Basic abc", None),
            ("", None),
            (None, None),
        ],
    )
    def test_extract_bearer_token(self, header, expected):
        assert extract_bearer_token(header) == expected

    def test_weak_secret_rejected_in_production(self, monkeypatch):
        monkeypatch.setenv("FLASK_ENV", "production")
        monkeypatch.setenv("JWT_SECRET_KEY", "secret123")

        with pytest.raises(ValueError):
            get_jwt_secret_key()


@pytest.mark.unit
class TestExceptions:
    @pytest.mark.parametrize(
        "error_class,status",
        [
            (ValidationError, 400),
            (AuthenticationError, 401),
            (AuthorizationError, 403),
            (NotFoundError, 404),
            (StateConflictError, 409),
        ],
    )
    def test_status_codes(self, error_class, status):
        error = error_class("boom")

        assert isinstance(error, CureConnectError)
        assert error.status_code == status
        assert error.message == "boom"
        assert str(error) == "boom"

    def test_validation_error_is_a_value_error(self):
        assert isinstance(ValidationError("bad"), ValueError)

    def test_not_found_for_resource(self):
        assert NotFoundError.for_resource("Doctor").message == "Doctor not found"
