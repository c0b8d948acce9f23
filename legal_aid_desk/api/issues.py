"""
Issue API Routes: filing and maintaining legal issues.

Each mutation appends to the issue's history. Issues are soft-deleted only.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ..core import AdminDep, CurrentUserDep, SessionDep
from ..schemas import (
    AddNoteRequest,
    ApiResponse,
    AssignParalegalRequest,
    AttachDocumentRequest,
    CreateIssueRequest,
    IssueResponse,
    IssueSummaryResponse,
    UpdateStatusRequest,
)
from ..services import IssueService, ServiceError
from .utils import raise_http

router = APIRouter(prefix="/issues", tags=["issues"])


def get_issue_service(session: SessionDep) -> IssueService:
    return IssueService(session)


IssueServiceDep = Annotated[IssueService, Depends(get_issue_service)]


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.post(
    "",
    response_model=ApiResponse[IssueResponse],
    status_code=status.HTTP_201_CREATED,
    summary="File a new legal issue",
)
async def create_issue(
    request: CreateIssueRequest,
    current_user: CurrentUserDep,
    service: IssueServiceDep,
):
    try:
        issue = await service.create_issue(
            owner=current_user.user,
            issue_type=request.issue_type,
            description=request.description,
        )
    except ServiceError as e:
        raise_http(e)

    return ApiResponse.ok(
        IssueResponse.model_validate(issue),
        "Issue submitted successfully.",
        status.HTTP_201_CREATED,
    )


@router.get(
    "",
    response_model=ApiResponse[list[IssueSummaryResponse]],
    summary="List my issues",
    description="""
    - Citizens see the issues they filed
    - Paralegals see the issues assigned to them
    - Admins see every issue
    """,
)
async def list_issues(current_user: CurrentUserDep, service: IssueServiceDep):
    try:
        issues = await service.list_issues(current_user.user)
    except ServiceError as e:
        raise_http(e)

    return ApiResponse.ok(
        [IssueSummaryResponse.model_validate(i) for i in issues],
        "Issues retrieved successfully.",
    )


@router.get("/{issue_id}", response_model=ApiResponse[IssueResponse])
async def get_issue(
    issue_id: UUID,
    current_user: CurrentUserDep,
    service: IssueServiceDep,
):
    """Issue with its history and documents."""
    try:
        issue = await service.get_issue(issue_id, current_user.user)
    except ServiceError as e:
        raise_http(e)

    return ApiResponse.ok(IssueResponse.model_validate(issue), "Issue retrieved successfully.")


@router.patch("/{issue_id}/status", response_model=ApiResponse[IssueResponse])
async def update_status(
    issue_id: UUID,
    request: UpdateStatusRequest,
    current_user: CurrentUserDep,
    service: IssueServiceDep,
):
    try:
        issue = await service.update_status(issue_id, request.status, current_user.user)
    except ServiceError as e:
        raise_http(e)

    return ApiResponse.ok(IssueResponse.model_validate(issue), "Status updated successfully.")


@router.post("/{issue_id}/assign", response_model=ApiResponse[IssueResponse])
async def assign_paralegal(
    issue_id: UUID,
    request: AssignParalegalRequest,
    current_user: AdminDep,
    service: IssueServiceDep,
):
    """Assign a paralegal to the issue (admins only)."""
    try:
        issue = await service.assign_paralegal(
            issue_id, request.paralegal_id, current_user.user
        )
    except ServiceError as e:
        raise_http(e)

    return ApiResponse.ok(IssueResponse.model_validate(issue), "Paralegal assigned successfully.")


@router.post(
    "/{issue_id}/notes",
    response_model=ApiResponse[IssueResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_note(
    issue_id: UUID,
    request: AddNoteRequest,
    current_user: CurrentUserDep,
    service: IssueServiceDep,
):
    try:
        issue = await service.add_note(issue_id, request.details, current_user.user)
    except ServiceError as e:
        raise_http(e)

    return ApiResponse.ok(
        IssueResponse.model_validate(issue),
        "Note added successfully.",
        status.HTTP_201_CREATED,
    )


@router.post(
    "/{issue_id}/documents",
    response_model=ApiResponse[IssueResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Attach a document reference",
)
async def attach_document(
    issue_id: UUID,
    request: AttachDocumentRequest,
    current_user: CurrentUserDep,
    service: IssueServiceDep,
):
    try:
        issue = await service.attach_document(
            issue_id,
            document_type=request.document_type,
            file_url=request.file_url,
            uploader=current_user.user,
        )
    except ServiceError as e:
        raise_http(e)

    return ApiResponse.ok(
        IssueResponse.model_validate(issue),
        "Document uploaded successfully.",
        status.HTTP_201_CREATED,
    )


@router.delete("/{issue_id}", response_model=ApiResponse[dict])
async def delete_issue(
    issue_id: UUID,
    current_user: CurrentUserDep,
    service: IssueServiceDep,
):
    """Soft delete: the issue disappears from every read path but is kept."""
    try:
        await service.soft_delete(issue_id, current_user.user)
    except ServiceError as e:
        raise_http(e)

    return ApiResponse.ok({"id": str(issue_id)}, "Issue deleted successfully.")
