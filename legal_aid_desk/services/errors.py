"""Service-layer exceptions.

Every error carries the HTTP status the API reports it with. None of them
are retried.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import status
from sqlalchemy.exc import SQLAlchemyError


logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base exception for service operations."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR


class ValidationError(ServiceError):
    """Input rejected before anything was persisted."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthorizationError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class PersistenceError(ServiceError):
    """The store was unavailable or a write failed."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class EmptyContentError(ValidationError):
    pass


class InvalidAssignmentError(ValidationError):
    """Assignment target is not a paralegal."""
    pass


class IssueNotFoundError(NotFoundError):
    """Issue does not exist or was soft-deleted."""
    pass


class UserNotFoundError(NotFoundError):
    pass


class NotificationNotFoundError(NotFoundError):
    pass


class NotParticipantError(AuthorizationError):
    """Caller is neither the issue owner nor its assigned paralegal."""
    pass


@contextmanager
def translate_db_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures inside the block as PersistenceError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"{operation} failed: {e}")
        raise PersistenceError(f"{operation} failed.") from e
