"""Legal Aid Desk API Schemas.

Schemas are organized by domain:
- base: common configuration, response envelope, errors, references
- issues: legal issues, history events, documents
- messages: conversation messages and notifications
"""

from .base import (
    ApiResponse,
    DeskBaseModel,
    ErrorDetail,
    ErrorResponse,
    UserRef,
)
from .issues import (
    AddNoteRequest,
    AssignParalegalRequest,
    AttachDocumentRequest,
    CreateIssueRequest,
    DocumentResponse,
    HistoryEventResponse,
    IssueResponse,
    IssueSummaryResponse,
    UpdateStatusRequest,
)
from .messages import (
    MarkAllReadResponse,
    MessageResponse,
    NotificationResponse,
    SendMessageRequest,
)

__all__ = [
    # Base
    "ApiResponse",
    "DeskBaseModel",
    "ErrorDetail",
    "ErrorResponse",
    "UserRef",
    # Issues
    "CreateIssueRequest",
    "UpdateStatusRequest",
    "AssignParalegalRequest",
    "AddNoteRequest",
    "AttachDocumentRequest",
    "HistoryEventResponse",
    "DocumentResponse",
    "IssueSummaryResponse",
    "IssueResponse",
    # Messages
    "SendMessageRequest",
    "MessageResponse",
    "NotificationResponse",
    "MarkAllReadResponse",
]
