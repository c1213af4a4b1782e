"""Test environment: in-memory SQLite, a fixed signing key, no startup seeding."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["JWT_ISSUER"] = "DevNexus"
os.environ["JWT_AUDIENCE"] = "DevNexusUsers"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["CREDENTIAL_VERIFIER"] = "password_hash"
os.environ["APP_ENV"] = "dev"
os.environ.pop("AZURE_DEVOPS_ORG_URL", None)
os.environ.pop("AZURE_DEVOPS_PAT", None)

import devnexus.core.security as security  # noqa: E402

# Minimum bcrypt cost keeps hashing fast in tests.
security.BCRYPT_ROUNDS = 4
