"""
Issue Service: filing and maintaining legal issues.

Every mutation appends an entry to the issue's history; history rows are
never updated or removed. Status changes are not constrained, any status
may follow any other. Issues are only ever soft-deleted.
"""

import logging
from uuid import UUID, uuid4

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import (
    HistoryEventType,
    IssueDocument,
    IssueHistoryEvent,
    IssueStatus,
    IssueType,
    LegalIssue,
    User,
    UserRole,
)
from .errors import (
    InvalidAssignmentError,
    IssueNotFoundError,
    NotParticipantError,
    UserNotFoundError,
    translate_db_errors,
)
from .participants import participants_of


logger = logging.getLogger(__name__)


ACTOR_LABELS = {
    UserRole.CITIZEN: "User",
    UserRole.PARALEGAL: "Paralegal",
    UserRole.ADMIN: "Admin",
}


def actor_label(user: User) -> str:
    return ACTOR_LABELS.get(user.role, "System")


class IssueService:
    """Create, read and update legal issues on behalf of a user."""

    def __init__(self, session: AsyncSession):
        self._session = session

    # =========================================================================
    # READ
    # =========================================================================

    async def get_issue(self, issue_id: UUID, viewer: User) -> LegalIssue:
        """Issue with owner, paralegal, history and documents loaded.

        Only participants and admins may see an issue.
        """
        issue = await self._load(issue_id)
        self._check_access(issue, viewer)
        return issue

    async def list_issues(self, viewer: User) -> list[LegalIssue]:
        """Issues visible to the viewer, newest first."""
        query = select(LegalIssue).where(LegalIssue.deleted_at.is_(None))
        if viewer.role == UserRole.PARALEGAL:
            query = query.where(
                or_(
                    LegalIssue.assigned_paralegal_id == viewer.id,
                    LegalIssue.owner_id == viewer.id,
                )
            )
        elif viewer.role != UserRole.ADMIN:
            query = query.where(LegalIssue.owner_id == viewer.id)

        with translate_db_errors("Listing issues"):
            result = await self._session.execute(
                query.order_by(LegalIssue.created_at.desc())
            )
            return list(result.scalars().all())

    # =========================================================================
    # WRITE
    # =========================================================================

    async def create_issue(
        self,
        owner: User,
        issue_type: IssueType,
        description: str | None = None,
    ) -> LegalIssue:
        issue_id = uuid4()
        with translate_db_errors("Creating issue"):
            self._session.add(
                LegalIssue(
                    id=issue_id,
                    owner_id=owner.id,
                    issue_type=issue_type,
                    description=description,
                    status=IssueStatus.PENDING,
                )
            )
            await self._session.flush()
            self._append_history(
                issue_id,
                HistoryEventType.ISSUE_CREATED,
                details=f"Issue type: {IssueType(issue_type).value}",
                actor=actor_label(owner),
            )
            await self._session.flush()

        logger.info(f"Issue {issue_id} filed by {owner.id}")
        return await self._load(issue_id)

    async def update_status(
        self,
        issue_id: UUID,
        new_status: IssueStatus,
        actor: User,
    ) -> LegalIssue:
        issue = await self._load(issue_id)
        self._check_access(issue, actor)

        new_status = IssueStatus(new_status)
        with translate_db_errors("Updating issue status"):
            issue.status = new_status
            self._append_history(
                issue.id,
                HistoryEventType.STATUS_CHANGED,
                details=f"Status changed to {new_status.value}",
                actor=actor_label(actor),
            )
            await self._session.flush()

        return await self._load(issue_id)

    async def assign_paralegal(
        self,
        issue_id: UUID,
        paralegal_id: UUID,
        actor: User,
    ) -> LegalIssue:
        """Assign (or reassign) the issue's paralegal. Callers must be admins."""
        issue = await self._load(issue_id)

        with translate_db_errors("Loading paralegal"):
            result = await self._session.execute(
                select(User).where(User.id == paralegal_id, User.deleted_at.is_(None))
            )
            paralegal = result.scalar_one_or_none()

        if paralegal is None:
            raise UserNotFoundError("Paralegal not found.")
        if paralegal.role != UserRole.PARALEGAL:
            raise InvalidAssignmentError("Only paralegals can be assigned to an issue.")

        with translate_db_errors("Assigning paralegal"):
            issue.assigned_paralegal_id = paralegal.id
            self._append_history(
                issue.id,
                HistoryEventType.ASSIGNED_TO_PARALEGAL,
                details=f"Assigned to {paralegal.full_name}",
                actor=actor_label(actor),
            )
            await self._session.flush()

        logger.info(f"Issue {issue_id} assigned to paralegal {paralegal.id}")
        return await self._load(issue_id)

    async def add_note(self, issue_id: UUID, details: str, actor: User) -> LegalIssue:
        issue = await self._load(issue_id)
        self._check_access(issue, actor)

        with translate_db_errors("Adding note"):
            self._append_history(
                issue.id,
                HistoryEventType.NOTE_ADDED,
                details=details,
                actor=actor_label(actor),
            )
            await self._session.flush()

        return await self._load(issue_id)

    async def attach_document(
        self,
        issue_id: UUID,
        document_type: str,
        file_url: str,
        uploader: User,
    ) -> LegalIssue:
        """Record an already-stored document against the issue."""
        issue = await self._load(issue_id)
        self._check_access(issue, uploader)

        with translate_db_errors("Attaching document"):
            self._session.add(
                IssueDocument(
                    id=uuid4(),
                    issue_id=issue.id,
                    uploaded_by=uploader.id,
                    document_type=document_type,
                    file_url=file_url,
                    submission_status="submitted",
                )
            )
            self._append_history(
                issue.id,
                HistoryEventType.DOCUMENT_UPLOADED,
                details=f"Document: {document_type}",
                actor="User",
            )
            await self._session.flush()

        return await self._load(issue_id)

    async def soft_delete(self, issue_id: UUID, actor: User) -> None:
        """Hide the issue. Only its owner or an admin may do this."""
        issue = await self._load(issue_id)
        if actor.role != UserRole.ADMIN and issue.owner_id != actor.id:
            raise NotParticipantError("Only the issue owner can delete this issue.")

        with translate_db_errors("Deleting issue"):
            issue.soft_delete()
            await self._session.flush()
        logger.info(f"Issue {issue_id} soft-deleted by {actor.id}")

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _append_history(
        self,
        issue_id: UUID,
        event: HistoryEventType,
        details: str | None,
        actor: str = "System",
    ) -> None:
        self._session.add(
            IssueHistoryEvent(
                id=uuid4(),
                issue_id=issue_id,
                event=event,
                details=details,
                actor=actor,
            )
        )

    def _check_access(self, issue: LegalIssue, user: User) -> None:
        if user.role == UserRole.ADMIN:
            return
        if user.id not in participants_of(issue):
            raise NotParticipantError("You are not authorized to access this issue.")

    async def _load(self, issue_id: UUID) -> LegalIssue:
        with translate_db_errors("Loading issue"):
            result = await self._session.execute(
                select(LegalIssue)
                .options(
                    selectinload(LegalIssue.owner),
                    selectinload(LegalIssue.assigned_paralegal),
                    selectinload(LegalIssue.history),
                    selectinload(LegalIssue.documents),
                )
                .where(LegalIssue.id == issue_id, LegalIssue.deleted_at.is_(None))
                .execution_options(populate_existing=True)
            )
            issue = result.scalar_one_or_none()

        if issue is None:
            raise IssueNotFoundError("Issue not found.")
        return issue
