"""Uniform response envelope returned by every JSON route."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """{success, message, data, errors}; data is None on failure, errors is None on success."""

    success: bool = Field(default=True, description="Whether the operation succeeded")
    message: str = Field(default="", description="Human-readable outcome")
    data: T | None = Field(default=None, description="Payload on success")
    errors: list[str] | None = Field(default=None, description="Error details on failure")

    @classmethod
    def ok(cls, data: T, message: str = "") -> "ApiResponse[T]":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, errors: list[str] | None = None) -> "ApiResponse[T]":
        return cls(success=False, message=message, data=None, errors=errors)
