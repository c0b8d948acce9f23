"""Notification API Routes: the caller's notification inbox."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ..core import CurrentUserDep, SessionDep
from ..schemas import ApiResponse, MarkAllReadResponse, NotificationResponse
from ..services import NotificationService, ServiceError
from .utils import raise_http

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(session: SessionDep) -> NotificationService:
    return NotificationService(session)


NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]


@router.get("", response_model=ApiResponse[list[NotificationResponse]])
async def list_notifications(
    current_user: CurrentUserDep,
    service: NotificationServiceDep,
    unread_only: bool = Query(default=False, description="Only unread notifications"),
    limit: int = Query(default=50, ge=1, le=200),
):
    """Newest first."""
    try:
        notifications = await service.list_for_user(
            current_user.id, unread_only=unread_only, limit=limit
        )
    except ServiceError as e:
        raise_http(e)

    return ApiResponse.ok(
        [NotificationResponse.model_validate(n) for n in notifications],
        "Notifications fetched successfully.",
    )


@router.post("/read-all", response_model=ApiResponse[MarkAllReadResponse])
async def mark_all_read(current_user: CurrentUserDep, service: NotificationServiceDep):
    try:
        updated = await service.mark_all_read(current_user.id)
    except ServiceError as e:
        raise_http(e)

    return ApiResponse.ok(MarkAllReadResponse(updated=updated), "Notifications marked as read.")


@router.post("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
async def mark_read(
    notification_id: UUID,
    current_user: CurrentUserDep,
    service: NotificationServiceDep,
):
    try:
        notification = await service.mark_read(notification_id, current_user.id)
    except ServiceError as e:
        raise_http(e)

    return ApiResponse.ok(
        NotificationResponse.model_validate(notification),
        "Notification marked as read.",
    )
