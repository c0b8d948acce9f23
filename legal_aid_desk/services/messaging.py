"""
Messaging Service: issue conversations and message ingress.

Sending a message runs these steps in order:
1. Validate content, resolve the issue, check the sender is a participant
2. Get or lazily create the issue's Conversation
3. Insert the Message and point Conversation.last_message_id at it
   (committed together)
4. Reload the Message joined with the sender's display fields
5. Publish message-delivered to the conversation room
6. For every other participant: commit a Notification, then publish
   notification-delivered to that participant's room

Fan-out only relays committed rows. Notifications are committed one by
one: a failure is logged and skipped, it never rolls back the Message or
the other notifications, and the sender is not told about it.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Conversation, Message, Notification, NotificationType
from ..realtime import EventBus, MessageDelivered, NotificationDelivered
from ..schemas import MessageResponse, NotificationResponse
from .errors import EmptyContentError, NotParticipantError, translate_db_errors
from .participants import ParticipantResolver, participants_of


logger = logging.getLogger(__name__)


@dataclass
class ConversationLog:
    """Messages of an issue's conversation, oldest first.

    conversation_id is None when nobody has written yet.
    """
    conversation_id: UUID | None
    messages: list[MessageResponse] = field(default_factory=list)

    @property
    def started(self) -> bool:
        return self.conversation_id is not None


def notification_text(sender_name: str, issue_type: str) -> str:
    return f"You have a new message from {sender_name} regarding issue: {issue_type}"


def issue_link(issue_id: UUID) -> str:
    return f"/issues/{issue_id}"


class MessagingService:
    """Reads and writes the conversation attached to a legal issue."""

    def __init__(self, session: AsyncSession, bus: EventBus):
        self._session = session
        self._bus = bus
        self._participants = ParticipantResolver(session)

    # =========================================================================
    # READ PATH
    # =========================================================================

    async def list_messages(self, issue_id: UUID, user_id: UUID) -> ConversationLog:
        """Messages for an issue, ascending by creation time."""
        participants = await self._participants.resolve(issue_id)
        if user_id not in participants:
            raise NotParticipantError("You are not authorized to view this conversation.")

        conversation = await self._find_conversation(issue_id)
        if conversation is None:
            return ConversationLog(conversation_id=None)

        with translate_db_errors("Loading messages"):
            result = await self._session.execute(
                select(Message)
                .options(selectinload(Message.sender))
                .where(Message.conversation_id == conversation.id)
                .order_by(Message.created_at.asc())
            )
            messages = result.scalars().all()

        return ConversationLog(
            conversation_id=conversation.id,
            messages=[MessageResponse.model_validate(m) for m in messages],
        )

    # =========================================================================
    # WRITE PATH
    # =========================================================================

    async def send_message(
        self,
        issue_id: UUID,
        sender_id: UUID,
        content: str | None,
    ) -> MessageResponse:
        """Persist a message and fan it out. See module docstring for the steps.

        Content is stored exactly as given; trimming only decides whether it
        is empty.
        """
        if not content or not content.strip():
            raise EmptyContentError("Message content cannot be empty.")

        issue = await self._participants.get_issue(issue_id)
        participants = participants_of(issue)
        if sender_id not in participants:
            raise NotParticipantError("You are not part of this issue's conversation.")

        # Captured up front: a failed notification rollback expires ORM state
        issue_type = issue.issue_type.value
        link = issue_link(issue.id)

        with translate_db_errors("Persisting message"):
            conversation = await self._get_or_create_conversation(issue.id, participants)
            conversation_id = conversation.id

            message = Message(
                id=uuid4(),
                conversation_id=conversation_id,
                sender_id=sender_id,
                content=content,
            )
            self._session.add(message)
            await self._session.flush()

            conversation.last_message_id = message.id
            await self._session.commit()

            joined = await self._load_message(message.id)

        payload = MessageResponse.model_validate(joined)
        logger.info(f"Message {payload.id} stored in conversation {conversation_id}")

        self._bus.publish(
            MessageDelivered(
                conversation_id=str(conversation_id),
                message=payload.model_dump(mode="json"),
            )
        )

        sender_name = payload.sender.full_name
        for participant_id in participants:
            if participant_id == sender_id:
                continue
            await self._notify(
                recipient_id=participant_id,
                sender_id=sender_id,
                text=notification_text(sender_name, issue_type),
                link=link,
            )

        return payload

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _find_conversation(self, issue_id: UUID) -> Conversation | None:
        with translate_db_errors("Loading conversation"):
            result = await self._session.execute(
                select(Conversation).where(Conversation.issue_id == issue_id)
            )
            return result.scalar_one_or_none()

    async def _get_or_create_conversation(
        self,
        issue_id: UUID,
        participants: list[UUID],
    ) -> Conversation:
        conversation = await self._find_conversation(issue_id)
        if conversation is not None:
            return conversation

        conversation = Conversation(
            id=uuid4(),
            issue_id=issue_id,
            participants=[str(p) for p in participants],
        )
        self._session.add(conversation)
        try:
            await self._session.flush()
        except IntegrityError:
            # Another request opened the conversation first
            await self._session.rollback()
            existing = await self._find_conversation(issue_id)
            if existing is None:
                raise
            return existing

        logger.info(f"Opened conversation {conversation.id} for issue {issue_id}")
        return conversation

    async def _load_message(self, message_id: UUID) -> Message:
        result = await self._session.execute(
            select(Message)
            .options(selectinload(Message.sender))
            .where(Message.id == message_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def _notify(
        self,
        recipient_id: UUID,
        sender_id: UUID,
        text: str,
        link: str,
    ) -> Notification | None:
        notification = Notification(
            id=uuid4(),
            recipient_id=recipient_id,
            sender_id=sender_id,
            notification_type=NotificationType.NEW_MESSAGE,
            message=text,
            link=link,
            is_read=False,
        )
        try:
            self._session.add(notification)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            logger.error(f"Notification for {recipient_id} not stored: {e}")
            return None

        self._bus.publish(
            NotificationDelivered(
                recipient_id=str(recipient_id),
                notification=NotificationResponse.model_validate(notification).model_dump(
                    mode="json"
                ),
            )
        )
        return notification
