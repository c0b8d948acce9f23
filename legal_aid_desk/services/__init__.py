"""Business logic services for Legal Aid Desk."""

from .errors import (
    AuthorizationError,
    EmptyContentError,
    InvalidAssignmentError,
    IssueNotFoundError,
    NotFoundError,
    NotificationNotFoundError,
    NotParticipantError,
    PersistenceError,
    ServiceError,
    UserNotFoundError,
    ValidationError,
)
from .issues import IssueService
from .messaging import ConversationLog, MessagingService
from .notifications import NotificationService
from .participants import ParticipantResolver, participants_of

__all__ = [
    # Services
    "IssueService",
    "MessagingService",
    "NotificationService",
    "ParticipantResolver",
    "ConversationLog",
    "participants_of",
    # Errors
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "AuthorizationError",
    "PersistenceError",
    "EmptyContentError",
    "InvalidAssignmentError",
    "IssueNotFoundError",
    "UserNotFoundError",
    "NotificationNotFoundError",
    "NotParticipantError",
]
