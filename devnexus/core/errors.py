"""Service-level exceptions. main.py maps each one to an HTTP status and the response envelope."""

from fastapi import status


class DevNexusError(Exception):
    """Base class for errors raised by services and the authorization gate."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        errors: list[str] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.message = message
        self.errors = errors
        self.cause = cause
        super().__init__(message)


class ConfigurationError(DevNexusError):
    """Raised when the JWT secret is missing or too short to sign tokens."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class UnauthenticatedError(DevNexusError):
    """Missing or malformed Authorization header, or an invalid/expired token."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(DevNexusError):
    """Valid token whose role is not in the required role set."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(DevNexusError):
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(DevNexusError):
    status_code = status.HTTP_400_BAD_REQUEST


class RateLimitedError(DevNexusError):
    """Too many attempts from one client within the rate-limit window."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, message: str, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(message)


class TransientStoreError(DevNexusError):
    """Database read/write failed. Not retried here; the underlying message is attached."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
