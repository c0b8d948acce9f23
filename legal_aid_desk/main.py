"""Legal Aid Desk: Main FastAPI Application.

Citizens file legal issues and talk to their assigned paralegal. Messages
are stored first and then relayed live over WebSockets.
"""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import api_router, realtime_router
from .core import close_db, get_settings, init_db
from .realtime import ConnectionManager, EventBus
from .schemas import ErrorResponse

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    if settings.create_tables_on_startup:
        try:
            await init_db()
        except Exception as e:
            logger.warning(f"Could not initialize database: {e}")
    yield
    await close_db()


def create_realtime(app: FastAPI) -> None:
    """Give the app its own fan-out bus with the room manager subscribed."""
    bus = EventBus()
    connections = ConnectionManager()
    connections.attach(bus)
    app.state.event_bus = bus
    app.state.connections = connections


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    ## Legal Aid Desk API

    Case management for legal aid.

    ### Key Features

    - **Legal Issues**: File an issue, attach documents, track its history.
    - **Conversations**: One thread per issue between the citizen and the assigned paralegal.
    - **Live Delivery**: New messages and notifications are pushed over `/ws`.

    ### Authentication

    Endpoints expect an upstream-issued JWT in the `Authorization: Bearer <token>` header.
    """,
    openapi_url=f"{settings.api_prefix}/openapi.json",
    docs_url=f"{settings.api_prefix}/docs",
    redoc_url=f"{settings.api_prefix}/redoc",
    lifespan=lifespan,
)

create_realtime(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", "HEAD"],
    allow_headers=["*"],
    max_age=86400,
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    error_detail = str(exc)
    if settings.debug or settings.environment != "production":
        error_detail = f"{str(exc)}\n{traceback.format_exc()}"

    logger.error(f"Unhandled exception: {error_detail}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="internal_error",
            message=f"An unexpected error occurred: {str(exc)[:200]}",
            details=[],
        ).model_dump(),
    )


# Health check endpoint
@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "live_connections": app.state.connections.connection_count,
    }


# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)
app.include_router(realtime_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "legal_aid_desk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
