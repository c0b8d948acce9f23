"""Schemas for legal issues, their history and documents."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from ..models import HistoryEventType, IssueStatus, IssueType
from .base import DeskBaseModel, UserRef


# =============================================================================
# REQUESTS
# =============================================================================


class CreateIssueRequest(BaseModel):
    """Request to file a new legal issue."""
    issue_type: IssueType
    description: str | None = Field(default=None, max_length=5000)


class UpdateStatusRequest(BaseModel):
    status: IssueStatus


class AssignParalegalRequest(BaseModel):
    paralegal_id: UUID


class AddNoteRequest(BaseModel):
    details: str = Field(..., min_length=1, max_length=2000)


class AttachDocumentRequest(BaseModel):
    """Reference to an already-stored document."""
    document_type: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=1000)


# =============================================================================
# RESPONSES
# =============================================================================


class HistoryEventResponse(DeskBaseModel):
    id: UUID
    event: HistoryEventType
    details: str | None
    actor: str
    created_at: datetime


class DocumentResponse(DeskBaseModel):
    id: UUID
    document_type: str
    file_url: str
    submission_status: str
    uploaded_by: UUID
    created_at: datetime


class IssueSummaryResponse(DeskBaseModel):
    """Issue without history or documents, for lists."""
    id: UUID
    owner_id: UUID
    assigned_paralegal_id: UUID | None
    issue_type: IssueType
    description: str | None
    status: IssueStatus
    created_at: datetime


class IssueResponse(IssueSummaryResponse):
    """Full issue with its history and documents."""
    owner: UserRef
    assigned_paralegal: UserRef | None = None
    history: list[HistoryEventResponse] = []
    documents: list[DocumentResponse] = []
