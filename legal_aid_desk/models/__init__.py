"""SQLAlchemy ORM Models for Legal Aid Desk."""

from .base import Base, SoftDeleteMixin, TimestampMixin, UUIDMixin, utcnow
from .models import (
    # Enums
    HistoryEventType,
    IssueStatus,
    IssueType,
    NotificationType,
    UserRole,
    # Users
    User,
    # Issues
    IssueDocument,
    IssueHistoryEvent,
    LegalIssue,
    # Messaging
    Conversation,
    Message,
    Notification,
)

__all__ = [
    # Base
    "Base",
    "UUIDMixin",
    "TimestampMixin",
    "SoftDeleteMixin",
    "utcnow",
    # Enums
    "UserRole",
    "IssueType",
    "IssueStatus",
    "HistoryEventType",
    "NotificationType",
    # Users
    "User",
    # Issues
    "LegalIssue",
    "IssueHistoryEvent",
    "IssueDocument",
    # Messaging
    "Conversation",
    "Message",
    "Notification",
]
