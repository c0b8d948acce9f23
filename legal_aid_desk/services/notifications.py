"""Notification inbox: listing and read state.

Notifications are created by the messaging service; this module only
lets recipients read them and mark them as read.
"""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Notification
from .errors import NotificationNotFoundError, translate_db_errors


logger = logging.getLogger(__name__)


class NotificationService:
    """Read side of a user's notifications."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def list_for_user(
        self,
        user_id: UUID,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[Notification]:
        """Newest first."""
        query = select(Notification).where(Notification.recipient_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc()).limit(limit)

        with translate_db_errors("Loading notifications"):
            result = await self._session.execute(query)
            return list(result.scalars().all())

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> Notification:
        with translate_db_errors("Updating notification"):
            result = await self._session.execute(
                select(Notification).where(
                    Notification.id == notification_id,
                    Notification.recipient_id == user_id,
                )
            )
            notification = result.scalar_one_or_none()

            # Someone else's notification looks the same as a missing one
            if notification is None:
                raise NotificationNotFoundError("Notification not found.")

            if not notification.is_read:
                notification.is_read = True
                await self._session.flush()
        return notification

    async def mark_all_read(self, user_id: UUID) -> int:
        with translate_db_errors("Updating notifications"):
            result = await self._session.execute(
                update(Notification)
                .where(
                    Notification.recipient_id == user_id,
                    Notification.is_read.is_(False),
                )
                .values(is_read=True)
            )
        logger.info(f"Marked {result.rowcount} notifications read for {user_id}")
        return result.rowcount
