"""Base schemas and common types for the Legal Aid Desk API."""

from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict


T = TypeVar("T")


# =============================================================================
# BASE SCHEMAS
# =============================================================================


class DeskBaseModel(BaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,  # Enable ORM mode
        populate_by_name=True,
        use_enum_values=True,
    )


class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapped around every successful JSON response."""

    status_code: int
    data: T
    message: str = "Success"
    success: bool = True

    @classmethod
    def ok(cls, data: T, message: str, status_code: int = 200) -> "ApiResponse[T]":
        return cls(
            status_code=status_code,
            data=data,
            message=message,
            success=status_code < 400,
        )


# =============================================================================
# ERROR RESPONSES
# =============================================================================


class ErrorDetail(DeskBaseModel):
    """Detailed error information."""

    field: str | None = None
    message: str
    code: str


class ErrorResponse(DeskBaseModel):
    """Standard error response format."""

    error: str
    message: str
    details: list[ErrorDetail] = []
    request_id: str | None = None


# =============================================================================
# COMMON REFERENCE SCHEMAS
# =============================================================================


class UserRef(DeskBaseModel):
    """Minimal user display fields for embedding in responses."""

    id: UUID
    full_name: str
    avatar_url: str | None = None
