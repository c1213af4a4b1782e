"""Tests for password hashing and JWT issue/validation."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt
from pydantic import SecretStr

from devnexus.core.config import get_settings
from devnexus.core.errors import ConfigurationError
from devnexus.core.security import (
    JWT_ALGORITHM,
    check_signing_key,
    create_access_token,
    decode_access_token,
    get_user_id_from_token,
    hash_password,
    verify_password,
)
from devnexus.models.user import User

SECRET = "unit-test-secret-key-with-at-least-32-bytes"


def _settings(**overrides):
    values = {"JWT_SECRET": SecretStr(SECRET)}
    values.update(overrides)
    return get_settings().model_copy(update=values)


def _user(role: str | None = "Developer") -> User:
    return User(
        id="user-001",
        username="developer",
        email="developer@company.com",
        display_name="John Developer",
        role=role,
    )


class TestPasswordHashing(unittest.TestCase):
    def test_hash_verifies_and_is_salted(self) -> None:
        hashed = hash_password("password123")
        self.assertNotEqual(hashed, "password123")
        self.assertTrue(verify_password("password123", hashed))
        self.assertFalse(verify_password("password124", hashed))
        self.assertNotEqual(hashed, hash_password("password123"))

    def test_garbage_hash_is_rejected(self) -> None:
        self.assertFalse(verify_password("password123", "not-a-bcrypt-hash"))


class TestTokenRoundTrip(unittest.TestCase):
    def test_issue_then_validate_reproduces_identity(self) -> None:
        settings = _settings()
        issued = create_access_token(_user(), settings)
        claims = decode_access_token(issued.token, settings)
        self.assertIsNotNone(claims)
        self.assertEqual(claims.sub, "user-001")
        self.assertEqual(claims.role, "Developer")
        self.assertEqual(claims.user_id, "user-001")
        self.assertEqual(claims.user_name, "developer")
        self.assertEqual(claims.name, "John Developer")
        self.assertEqual(claims.iss, settings.JWT_ISSUER)
        self.assertEqual(claims.aud, settings.JWT_AUDIENCE)
        self.assertEqual(claims.exp, issued.expires_at)

    def test_expiry_follows_configured_minutes(self) -> None:
        settings = _settings(JWT_EXPIRE_MINUTES=30)
        before = datetime.now(UTC)
        issued = create_access_token(_user(), settings)
        delta = issued.expires_at - before
        self.assertGreater(delta, timedelta(minutes=29))
        self.assertLessEqual(delta, timedelta(minutes=30))

    def test_missing_role_defaults_to_user(self) -> None:
        settings = _settings()
        issued = create_access_token(_user(role=None), settings)
        self.assertEqual(decode_access_token(issued.token, settings).role, "User")

    def test_get_user_id_from_token(self) -> None:
        settings = _settings()
        issued = create_access_token(_user(), settings)
        self.assertEqual(get_user_id_from_token(issued.token, settings), "user-001")
        self.assertIsNone(get_user_id_from_token("garbage", settings))


class TestTokenRejection(unittest.TestCase):
    def _payload(self, **overrides) -> dict:
        now = datetime.now(UTC)
        payload = {
            "sub": "user-001",
            "name": "John Developer",
            "email": "developer@company.com",
            "role": "Developer",
            "UserId": "user-001",
            "UserName": "developer",
            "iss": "DevNexus",
            "aud": "DevNexusUsers",
            "iat": now,
            "exp": now + timedelta(minutes=5),
        }
        payload.update(overrides)
        return payload

    def test_expired_token_is_invalid(self) -> None:
        now = datetime.now(UTC)
        token = jwt.encode(
            self._payload(iat=now - timedelta(minutes=10), exp=now - timedelta(seconds=1)),
            SECRET,
            algorithm=JWT_ALGORITHM,
        )
        self.assertIsNone(decode_access_token(token, _settings()))

    def test_token_signed_with_other_secret_is_invalid(self) -> None:
        other = _settings(JWT_SECRET=SecretStr("another-secret-key-that-is-32-bytes-long"))
        issued = create_access_token(_user(), other)
        self.assertIsNone(decode_access_token(issued.token, _settings()))

    def test_wrong_issuer_is_invalid(self) -> None:
        token = jwt.encode(self._payload(iss="SomeoneElse"), SECRET, algorithm=JWT_ALGORITHM)
        self.assertIsNone(decode_access_token(token, _settings()))

    def test_wrong_audience_is_invalid(self) -> None:
        token = jwt.encode(self._payload(aud="OtherUsers"), SECRET, algorithm=JWT_ALGORITHM)
        self.assertIsNone(decode_access_token(token, _settings()))

    def test_missing_user_claims_are_invalid(self) -> None:
        payload = self._payload()
        del payload["UserId"]
        token = jwt.encode(payload, SECRET, algorithm=JWT_ALGORITHM)
        self.assertIsNone(decode_access_token(token, _settings()))

    def test_malformed_token_is_invalid(self) -> None:
        self.assertIsNone(decode_access_token("not.a.jwt", _settings()))


class TestSigningKeyConfiguration(unittest.TestCase):
    def test_absent_secret_blocks_issuance(self) -> None:
        settings = _settings(JWT_SECRET=None)
        with self.assertRaises(ConfigurationError):
            create_access_token(_user(), settings)
        with self.assertRaises(ConfigurationError):
            check_signing_key(settings)

    def test_short_secret_blocks_issuance(self) -> None:
        with self.assertRaises(ConfigurationError):
            create_access_token(_user(), _settings(JWT_SECRET=SecretStr("too-short")))

    def test_absent_secret_validates_nothing(self) -> None:
        issued = create_access_token(_user(), _settings())
        self.assertIsNone(decode_access_token(issued.token, _settings(JWT_SECRET=None)))
