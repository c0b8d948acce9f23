"""
Conversation API Routes: the message thread attached to a legal issue.

1. GET  /issues/{issue_id}/messages - Messages, oldest first
2. POST /issues/{issue_id}/messages - Send a message (persist + live fan-out)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ..core import CurrentUserDep, EventBusDep, SessionDep
from ..schemas import ApiResponse, MessageResponse, SendMessageRequest
from ..services import MessagingService, ServiceError
from .utils import raise_http

router = APIRouter(prefix="/issues", tags=["messages"])


def get_messaging_service(session: SessionDep, bus: EventBusDep) -> MessagingService:
    return MessagingService(session, bus)


MessagingServiceDep = Annotated[MessagingService, Depends(get_messaging_service)]


@router.get(
    "/{issue_id}/messages",
    response_model=ApiResponse[list[MessageResponse]],
    summary="List messages for an issue",
)
async def get_messages_for_issue(
    issue_id: UUID,
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
):
    """Messages in ascending creation order, or an empty list if no one has written yet."""
    try:
        log = await service.list_messages(issue_id, current_user.id)
    except ServiceError as e:
        raise_http(e)

    if not log.started:
        return ApiResponse.ok([], "Start of conversation.")
    return ApiResponse.ok(log.messages, "Messages fetched successfully.")


@router.post(
    "/{issue_id}/messages",
    response_model=ApiResponse[MessageResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
    description="""
    Store a message in the issue's conversation and relay it live.

    - Only the issue owner and its assigned paralegal may send
    - Connected clients in the conversation room receive `new_message`
    - Every other participant gets a notification (`new_notification`)

    Live delivery is best effort and is not reported back to the sender.
    """,
)
async def send_message(
    issue_id: UUID,
    request: SendMessageRequest,
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
):
    try:
        message = await service.send_message(issue_id, current_user.id, request.content)
    except ServiceError as e:
        raise_http(e)

    return ApiResponse.ok(message, "Message sent successfully.", status.HTTP_201_CREATED)
