"""Core application utilities."""

from .config import Settings, get_settings
from .database import (
    async_session_factory,
    build_engine,
    build_session_factory,
    close_db,
    engine,
    get_session,
    init_db,
)
from .dependencies import (
    AdminDep,
    CurrentUser,
    CurrentUserDep,
    EventBusDep,
    SessionDep,
    get_current_user,
    get_event_bus,
    require_admin,
)
from .security import create_access_token, decode_token

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "engine",
    "async_session_factory",
    "build_engine",
    "build_session_factory",
    "get_session",
    "init_db",
    "close_db",
    # Dependencies
    "CurrentUser",
    "get_current_user",
    "get_event_bus",
    "require_admin",
    "CurrentUserDep",
    "AdminDep",
    "SessionDep",
    "EventBusDep",
    # Security
    "create_access_token",
    "decode_token",
]
