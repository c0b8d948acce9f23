"""Shared helpers for API routes."""

from typing import NoReturn

from fastapi import HTTPException

from ..services import ServiceError


def raise_http(error: ServiceError) -> NoReturn:
    """Translate a service error into the matching HTTP error."""
    raise HTTPException(status_code=error.status_code, detail=str(error)) from error
