"""
Tests for the Messaging Service - message ingress and the read path.

These tests verify:
1. PARTICIPANTS: only the owner and the assigned paralegal may read/write
2. VALIDATION: empty content is rejected before anything is stored
3. SEND: message, conversation pointer and notifications are persisted
4. FAN-OUT: committed rows are published on the bus
5. READ: messages come back oldest first
"""

import pytest
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from legal_aid_desk.models import (
    Conversation,
    IssueType,
    LegalIssue,
    Message,
    Notification,
    NotificationType,
)
from legal_aid_desk.realtime import (
    EventBus,
    EventKind,
    MessageDelivered,
    NotificationDelivered,
)
from legal_aid_desk.services import (
    AuthorizationError,
    EmptyContentError,
    IssueNotFoundError,
    MessagingService,
    NotParticipantError,
    ParticipantResolver,
    ValidationError,
    participants_of,
)


async def count(session: AsyncSession, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


# =============================================================================
# TEST: PARTICIPANT RESOLVER
# =============================================================================


class TestParticipantResolver:

    async def test_unassigned_issue_has_only_the_owner(
        self, session: AsyncSession, users, unassigned_issue: LegalIssue
    ):
        participants = await ParticipantResolver(session).resolve(unassigned_issue.id)

        assert participants == [users.owner.id]

    async def test_assigned_issue_lists_owner_then_paralegal(
        self, session: AsyncSession, users, assigned_issue: LegalIssue
    ):
        participants = await ParticipantResolver(session).resolve(assigned_issue.id)

        assert participants == [users.owner.id, users.paralegal.id]

    def test_owner_who_is_also_paralegal_appears_once(self):
        user_id = uuid4()
        issue = LegalIssue(
            owner_id=user_id,
            assigned_paralegal_id=user_id,
            issue_type=IssueType.OTHER,
        )

        assert participants_of(issue) == [user_id]

    async def test_missing_issue_raises_not_found(self, session: AsyncSession, users):
        with pytest.raises(IssueNotFoundError):
            await ParticipantResolver(session).resolve(uuid4())

    async def test_soft_deleted_issue_raises_not_found(
        self, session: AsyncSession, assigned_issue: LegalIssue
    ):
        assigned_issue.soft_delete()
        await session.commit()

        with pytest.raises(IssueNotFoundError):
            await ParticipantResolver(session).resolve(assigned_issue.id)


# =============================================================================
# TEST: SEND MESSAGE
# =============================================================================


class TestSendMessage:

    async def test_owner_message_creates_conversation_and_notifies_paralegal(
        self,
        session: AsyncSession,
        bus: EventBus,
        published: list,
        users,
        assigned_issue: LegalIssue,
    ):
        service = MessagingService(session, bus)

        message = await service.send_message(
            assigned_issue.id, users.owner.id, "Need help with Aadhaar update."
        )

        conversation = await session.scalar(
            select(Conversation).where(Conversation.issue_id == assigned_issue.id)
        )
        assert conversation is not None
        assert conversation.last_message_id == message.id
        assert conversation.participants == [str(users.owner.id), str(users.paralegal.id)]

        assert message.conversation_id == conversation.id
        assert message.content == "Need help with Aadhaar update."
        assert message.sender.id == users.owner.id
        assert message.sender.full_name == "Ramesh Kumar"
        assert message.sender.avatar_url == users.owner.avatar_url

        notifications = (await session.scalars(select(Notification))).all()
        assert len(notifications) == 1
        notification = notifications[0]
        assert notification.recipient_id == users.paralegal.id
        assert notification.sender_id == users.owner.id
        assert notification.notification_type == NotificationType.NEW_MESSAGE
        assert notification.message == (
            "You have a new message from Ramesh Kumar regarding issue: Aadhaar Issue"
        )
        assert notification.link == f"/issues/{assigned_issue.id}"
        assert notification.is_read is False

    async def test_publishes_message_then_notification(
        self,
        session: AsyncSession,
        bus: EventBus,
        published: list,
        users,
        assigned_issue: LegalIssue,
    ):
        service = MessagingService(session, bus)

        message = await service.send_message(
            assigned_issue.id, users.owner.id, "Need help with Aadhaar update."
        )

        assert [e.kind for e in published] == [
            EventKind.MESSAGE_DELIVERED,
            EventKind.NOTIFICATION_DELIVERED,
        ]

        delivered, notified = published
        assert isinstance(delivered, MessageDelivered)
        assert delivered.conversation_id == str(message.conversation_id)
        assert delivered.message["id"] == str(message.id)
        assert delivered.message["sender"]["full_name"] == "Ramesh Kumar"

        assert isinstance(notified, NotificationDelivered)
        assert notified.recipient_id == str(users.paralegal.id)
        assert notified.notification["recipient_id"] == str(users.paralegal.id)
        assert notified.notification["notification_type"] == "NEW_MESSAGE"

    async def test_paralegal_reply_notifies_owner_only(
        self,
        session: AsyncSession,
        bus: EventBus,
        published: list,
        users,
        assigned_issue: LegalIssue,
    ):
        service = MessagingService(session, bus)

        await service.send_message(assigned_issue.id, users.paralegal.id, "Please upload your card.")

        recipients = (await session.scalars(select(Notification.recipient_id))).all()
        assert recipients == [users.owner.id]

    async def test_owner_alone_gets_no_notifications(
        self,
        session: AsyncSession,
        bus: EventBus,
        published: list,
        users,
        unassigned_issue: LegalIssue,
    ):
        service = MessagingService(session, bus)

        await service.send_message(unassigned_issue.id, users.owner.id, "Anyone there?")

        assert await count(session, Message) == 1
        assert await count(session, Notification) == 0
        assert [e.kind for e in published] == [EventKind.MESSAGE_DELIVERED]

    async def test_padded_content_is_stored_verbatim(
        self, session: AsyncSession, bus: EventBus, users, assigned_issue: LegalIssue
    ):
        service = MessagingService(session, bus)

        message = await service.send_message(assigned_issue.id, users.owner.id, "  hello \n")

        stored = await session.scalar(select(Message.content).where(Message.id == message.id))
        assert stored == "  hello \n"
        assert message.content == "  hello \n"

    async def test_second_message_reuses_conversation_and_moves_pointer(
        self, session: AsyncSession, bus: EventBus, users, assigned_issue: LegalIssue
    ):
        service = MessagingService(session, bus)

        first = await service.send_message(assigned_issue.id, users.owner.id, "First")
        second = await service.send_message(assigned_issue.id, users.paralegal.id, "Second")

        assert first.conversation_id == second.conversation_id
        assert await count(session, Conversation) == 1

        last_message_id = await session.scalar(
            select(Conversation.last_message_id).where(
                Conversation.id == first.conversation_id
            )
        )
        assert last_message_id == second.id

    async def test_send_without_subscribers_still_succeeds(
        self, session: AsyncSession, users, assigned_issue: LegalIssue
    ):
        service = MessagingService(session, EventBus())

        message = await service.send_message(assigned_issue.id, users.owner.id, "Hello")

        assert message.id is not None
        assert await count(session, Notification) == 1

    async def test_failing_subscriber_does_not_fail_the_send(
        self, session: AsyncSession, bus: EventBus, users, assigned_issue: LegalIssue
    ):
        def broken(event):
            raise RuntimeError("socket layer down")

        bus.subscribe(EventKind.MESSAGE_DELIVERED, broken)
        bus.subscribe(EventKind.NOTIFICATION_DELIVERED, broken)
        service = MessagingService(session, bus)

        await service.send_message(assigned_issue.id, users.owner.id, "Hello")

        assert await count(session, Message) == 1
        assert await count(session, Notification) == 1

    async def test_failed_notification_keeps_the_message(
        self,
        session: AsyncSession,
        bus: EventBus,
        published: list,
        users,
        assigned_issue: LegalIssue,
        monkeypatch,
    ):
        # The rollback after a failed notification expires seeded rows
        issue_id, owner_id = assigned_issue.id, users.owner.id
        service = MessagingService(session, bus)

        real_commit = session.commit
        commits = []

        async def commit_failing_on_notification():
            commits.append(True)
            if len(commits) == 2:
                raise OperationalError("INSERT INTO notifications", {}, Exception("disk I/O error"))
            await real_commit()

        monkeypatch.setattr(session, "commit", commit_failing_on_notification)

        message = await service.send_message(issue_id, owner_id, "Hello")

        assert message.content == "Hello"
        assert await count(session, Message) == 1
        assert await count(session, Notification) == 0
        last_message_id = await session.scalar(
            select(Conversation.last_message_id).where(Conversation.issue_id == issue_id)
        )
        assert last_message_id == message.id
        assert [e.kind for e in published] == [EventKind.MESSAGE_DELIVERED]

    async def test_conversation_opened_concurrently_is_reused(
        self,
        session: AsyncSession,
        session_factory,
        bus: EventBus,
        users,
        assigned_issue: LegalIssue,
        monkeypatch,
    ):
        issue_id, owner_id = assigned_issue.id, users.owner.id
        participants = [str(owner_id), str(users.paralegal.id)]

        # Another request opens the conversation after our lookup missed it
        async with session_factory() as other:
            existing = Conversation(id=uuid4(), issue_id=issue_id, participants=participants)
            other.add(existing)
            await other.commit()

        service = MessagingService(session, bus)
        real_find = service._find_conversation
        lookups = []

        async def find_missing_first(lookup_issue_id):
            lookups.append(lookup_issue_id)
            if len(lookups) == 1:
                return None
            return await real_find(lookup_issue_id)

        monkeypatch.setattr(service, "_find_conversation", find_missing_first)

        message = await service.send_message(issue_id, owner_id, "Hello")

        assert len(lookups) == 2
        assert message.conversation_id == existing.id
        assert await count(session, Conversation) == 1
        last_message_id = await session.scalar(
            select(Conversation.last_message_id).where(Conversation.id == existing.id)
        )
        assert last_message_id == message.id


# =============================================================================
# TEST: REJECTED SENDS
# =============================================================================


class TestRejectedSends:

    @pytest.mark.parametrize("content", ["", "   ", "\n\t ", None])
    async def test_empty_content_persists_nothing(
        self,
        session: AsyncSession,
        bus: EventBus,
        published: list,
        users,
        assigned_issue: LegalIssue,
        content,
    ):
        service = MessagingService(session, bus)

        with pytest.raises(EmptyContentError) as exc_info:
            await service.send_message(assigned_issue.id, users.owner.id, content)

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.status_code == 400
        assert await count(session, Conversation) == 0
        assert await count(session, Message) == 0
        assert await count(session, Notification) == 0
        assert published == []

    async def test_empty_content_checked_before_issue_lookup(
        self, session: AsyncSession, bus: EventBus, users
    ):
        service = MessagingService(session, bus)

        with pytest.raises(EmptyContentError):
            await service.send_message(uuid4(), users.owner.id, " ")

    async def test_outsider_is_rejected_and_nothing_persisted(
        self,
        session: AsyncSession,
        bus: EventBus,
        published: list,
        users,
        assigned_issue: LegalIssue,
    ):
        service = MessagingService(session, bus)

        with pytest.raises(NotParticipantError) as exc_info:
            await service.send_message(assigned_issue.id, users.outsider.id, "Let me in")

        assert isinstance(exc_info.value, AuthorizationError)
        assert exc_info.value.status_code == 403
        assert await count(session, Conversation) == 0
        assert await count(session, Message) == 0
        assert await count(session, Notification) == 0
        assert published == []

    async def test_paralegal_not_yet_assigned_is_rejected(
        self,
        session: AsyncSession,
        bus: EventBus,
        users,
        assigned_issue: LegalIssue,
        unassigned_issue: LegalIssue,
    ):
        service = MessagingService(session, bus)
        await service.send_message(unassigned_issue.id, users.owner.id, "Hello")

        with pytest.raises(NotParticipantError):
            await service.send_message(unassigned_issue.id, users.paralegal.id, "Hi")

        assert await count(session, Message) == 1

    async def test_admin_is_not_a_participant(
        self, session: AsyncSession, bus: EventBus, users, assigned_issue: LegalIssue
    ):
        service = MessagingService(session, bus)

        with pytest.raises(NotParticipantError):
            await service.send_message(assigned_issue.id, users.admin.id, "Checking in")

    async def test_missing_issue_is_rejected(self, session: AsyncSession, bus: EventBus, users):
        service = MessagingService(session, bus)

        with pytest.raises(IssueNotFoundError) as exc_info:
            await service.send_message(uuid4(), users.owner.id, "Hello")

        assert exc_info.value.status_code == 404


# =============================================================================
# TEST: READ PATH
# =============================================================================


class TestListMessages:

    async def test_no_conversation_yet(
        self, session: AsyncSession, bus: EventBus, users, assigned_issue: LegalIssue
    ):
        service = MessagingService(session, bus)

        log = await service.list_messages(assigned_issue.id, users.owner.id)

        assert log.started is False
        assert log.conversation_id is None
        assert log.messages == []

    async def test_messages_are_oldest_first(
        self, session: AsyncSession, bus: EventBus, users, assigned_issue: LegalIssue
    ):
        service = MessagingService(session, bus)
        sent = [
            await service.send_message(assigned_issue.id, users.owner.id, "one"),
            await service.send_message(assigned_issue.id, users.paralegal.id, "two"),
            await service.send_message(assigned_issue.id, users.owner.id, "three"),
        ]

        log = await service.list_messages(assigned_issue.id, users.paralegal.id)

        assert log.started is True
        assert [m.id for m in log.messages] == [m.id for m in sent]
        timestamps = [m.created_at for m in log.messages]
        assert timestamps == sorted(timestamps)
        assert log.messages[1].sender.full_name == "Sunita Devi"

    async def test_outsider_cannot_read(
        self, session: AsyncSession, bus: EventBus, users, assigned_issue: LegalIssue
    ):
        service = MessagingService(session, bus)
        await service.send_message(assigned_issue.id, users.owner.id, "private")

        with pytest.raises(NotParticipantError):
            await service.list_messages(assigned_issue.id, users.outsider.id)

    async def test_missing_issue(self, session: AsyncSession, bus: EventBus, users):
        service = MessagingService(session, bus)

        with pytest.raises(IssueNotFoundError):
            await service.list_messages(uuid4(), users.owner.id)
