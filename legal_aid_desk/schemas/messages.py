"""Schemas for conversation messages and notifications."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from ..models import NotificationType
from .base import DeskBaseModel, UserRef


class SendMessageRequest(BaseModel):
    """Body of POST /issues/{issue_id}/messages.

    Emptiness is checked by the messaging service so that the error is
    reported the same way for every caller.
    """
    content: str = Field(default="", max_length=10_000)


class MessageResponse(DeskBaseModel):
    """A message joined with its sender's display fields."""

    id: UUID
    conversation_id: UUID
    sender: UserRef
    content: str
    created_at: datetime


class NotificationResponse(DeskBaseModel):
    id: UUID
    recipient_id: UUID
    sender_id: UUID | None
    notification_type: NotificationType
    message: str
    link: str | None
    is_read: bool
    created_at: datetime


class MarkAllReadResponse(BaseModel):
    updated: int
