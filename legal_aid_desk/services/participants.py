"""Participant resolution for legal issues.

The participants of an issue are its owner and, once assigned, its
paralegal. They are the only users allowed to read or write the issue's
conversation.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import LegalIssue
from .errors import IssueNotFoundError, translate_db_errors


def participants_of(issue: LegalIssue) -> list[UUID]:
    """Owner first, then the paralegal; nulls and duplicates removed."""
    participants: list[UUID] = []
    for user_id in (issue.owner_id, issue.assigned_paralegal_id):
        if user_id is not None and user_id not in participants:
            participants.append(user_id)
    return participants


class ParticipantResolver:
    """Read-only lookup of an issue and its participant set."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_issue(self, issue_id: UUID) -> LegalIssue:
        with translate_db_errors("Loading issue"):
            result = await self._session.execute(
                select(LegalIssue).where(
                    LegalIssue.id == issue_id,
                    LegalIssue.deleted_at.is_(None),
                )
            )
            issue = result.scalar_one_or_none()

        if issue is None:
            raise IssueNotFoundError("Issue not found.")
        return issue

    async def resolve(self, issue_id: UUID) -> list[UUID]:
        return participants_of(await self.get_issue(issue_id))
