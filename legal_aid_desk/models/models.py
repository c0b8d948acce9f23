"""SQLAlchemy ORM Models for Legal Aid Desk.

Users file legal issues, attach document references and talk to the
paralegal assigned to their issue through a per-issue conversation.
"""

from datetime import datetime
from enum import Enum as PyEnum
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, SoftDeleteMixin, TimestampMixin, UUIDMixin, utcnow


# =============================================================================
# ENUMS
# =============================================================================


class UserRole(str, PyEnum):
    CITIZEN = "citizen"
    PARALEGAL = "paralegal"
    ADMIN = "admin"


class IssueType(str, PyEnum):
    """Closed set of issue categories a citizen can file."""
    AADHAAR = "Aadhaar Issue"
    PENSION = "Pension Issue"
    LAND_DISPUTE = "Land Dispute"
    COURT_SUMMON = "Court Summon"
    CERTIFICATE_MISSING = "Certificate Missing"
    FRAUD_CASE = "Fraud Case"
    OTHER = "Other"


class IssueStatus(str, PyEnum):
    # Any status may follow any other
    PENDING = "Pending"
    SUBMITTED = "Submitted"
    ESCALATED = "Escalated"
    RESOLVED = "Resolved"


class HistoryEventType(str, PyEnum):
    ISSUE_CREATED = "Issue Created"
    DOCUMENT_UPLOADED = "Document Uploaded"
    STATUS_CHANGED = "Status Changed"
    ASSIGNED_TO_PARALEGAL = "Assigned to Paralegal"
    NOTE_ADDED = "Note Added"


class NotificationType(str, PyEnum):
    """Types of notifications."""
    NEW_MESSAGE = "NEW_MESSAGE"


def _enum(enum_cls: type[PyEnum], name: str) -> Enum:
    return Enum(enum_cls, name=name, values_callable=lambda x: [e.value for e in x])


# =============================================================================
# USER
# =============================================================================


class User(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """Application user: citizen, paralegal or admin."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(500))
    role: Mapped[UserRole] = mapped_column(
        _enum(UserRole, "user_role"),
        default=UserRole.CITIZEN,
        nullable=False,
    )


# =============================================================================
# LEGAL ISSUES
# =============================================================================


class LegalIssue(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """A citizen's case. Never hard-deleted."""

    __tablename__ = "legal_issues"

    owner_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    assigned_paralegal_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id"), nullable=True
    )
    issue_type: Mapped[IssueType] = mapped_column(
        _enum(IssueType, "issue_type"), nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[IssueStatus] = mapped_column(
        _enum(IssueStatus, "issue_status"),
        default=IssueStatus.PENDING,
        nullable=False,
    )

    # Relationships
    owner: Mapped["User"] = relationship(foreign_keys=[owner_id])
    assigned_paralegal: Mapped["User | None"] = relationship(
        foreign_keys=[assigned_paralegal_id]
    )
    history: Mapped[list["IssueHistoryEvent"]] = relationship(
        back_populates="issue",
        order_by="IssueHistoryEvent.created_at",
    )
    documents: Mapped[list["IssueDocument"]] = relationship(
        back_populates="issue",
        order_by="IssueDocument.created_at",
    )

    __table_args__ = (
        Index("idx_legal_issues_owner", "owner_id"),
        Index("idx_legal_issues_paralegal", "assigned_paralegal_id"),
    )


class IssueHistoryEvent(Base, UUIDMixin):
    """Append-only history entry for a legal issue."""

    __tablename__ = "issue_history"

    issue_id: Mapped[UUID] = mapped_column(
        ForeignKey("legal_issues.id"), nullable=False
    )
    event: Mapped[HistoryEventType] = mapped_column(
        _enum(HistoryEventType, "history_event_type"), nullable=False
    )
    details: Mapped[str | None] = mapped_column(Text)
    actor: Mapped[str] = mapped_column(String(50), default="System")
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    issue: Mapped["LegalIssue"] = relationship(back_populates="history")

    __table_args__ = (
        Index("idx_issue_history_issue", "issue_id", "created_at"),
    )


class IssueDocument(Base, UUIDMixin, SoftDeleteMixin):
    """Reference to a document stored elsewhere, attached to an issue."""

    __tablename__ = "issue_documents"

    issue_id: Mapped[UUID] = mapped_column(
        ForeignKey("legal_issues.id"), nullable=False
    )
    uploaded_by: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    document_type: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    submission_status: Mapped[str] = mapped_column(String(50), default="submitted")
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    issue: Mapped["LegalIssue"] = relationship(back_populates="documents")
    uploader: Mapped["User"] = relationship()


# =============================================================================
# CONVERSATIONS
# =============================================================================


class Conversation(Base, UUIDMixin, TimestampMixin):
    """The single conversation attached to a legal issue."""

    __tablename__ = "conversations"

    issue_id: Mapped[UUID] = mapped_column(
        ForeignKey("legal_issues.id"), unique=True, nullable=False
    )
    # Snapshot of the participant set when the conversation was opened
    participants: Mapped[list[str]] = mapped_column(JSON, default=list)
    last_message_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("messages.id", use_alter=True), nullable=True
    )

    issue: Mapped["LegalIssue"] = relationship()
    last_message: Mapped["Message | None"] = relationship(
        foreign_keys=[last_message_id], post_update=True
    )


class Message(Base, UUIDMixin):
    """A chat message. Immutable once created."""

    __tablename__ = "messages"

    conversation_id: Mapped[UUID] = mapped_column(
        ForeignKey("conversations.id"), nullable=False
    )
    sender_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    conversation: Mapped["Conversation"] = relationship(foreign_keys=[conversation_id])
    sender: Mapped["User"] = relationship()

    __table_args__ = (
        Index("idx_messages_conversation", "conversation_id", "created_at"),
    )


# =============================================================================
# NOTIFICATIONS
# =============================================================================


class Notification(Base, UUIDMixin):
    """An in-app notification addressed to one user."""

    __tablename__ = "notifications"

    recipient_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    sender_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"))
    notification_type: Mapped[NotificationType] = mapped_column(
        _enum(NotificationType, "notification_type"), nullable=False
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str | None] = mapped_column(String(500))
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    recipient: Mapped["User"] = relationship(foreign_keys=[recipient_id])
    sender: Mapped["User | None"] = relationship(foreign_keys=[sender_id])

    __table_args__ = (
        Index("idx_notifications_recipient", "recipient_id", "created_at"),
    )
