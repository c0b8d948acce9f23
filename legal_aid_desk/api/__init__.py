"""API routes for Legal Aid Desk."""

from fastapi import APIRouter

from .issues import router as issues_router
from .messages import router as messages_router
from .notifications import router as notifications_router
from .realtime import router as realtime_router

# Main API router (mounted under the API prefix)
api_router = APIRouter()

api_router.include_router(issues_router)
api_router.include_router(messages_router)
api_router.include_router(notifications_router)

__all__ = ["api_router", "realtime_router"]
