"""Shared fixtures: a throwaway SQLite database per test, seeded users and
issues, a fresh fan-out bus, and an HTTP client bound to the app."""

import os

# Settings are read once at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from dataclasses import dataclass
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from legal_aid_desk.core import (
    build_session_factory,
    create_access_token,
    get_event_bus,
    get_session,
    init_db,
)
from legal_aid_desk.main import app
from legal_aid_desk.models import IssueType, LegalIssue, User, UserRole
from legal_aid_desk.realtime import (
    ConnectionManager,
    EventBus,
    EventKind,
)


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'desk.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


# =============================================================================
# SEED DATA
# =============================================================================


@dataclass
class Users:
    owner: User
    paralegal: User
    outsider: User
    admin: User


@pytest.fixture
async def users(session: AsyncSession) -> Users:
    def make(name: str, role: UserRole) -> User:
        return User(
            id=uuid4(),
            email=f"{name.lower().replace(' ', '.')}@example.org",
            full_name=name,
            avatar_url=f"https://cdn.example.org/{name.split()[0].lower()}.png",
            role=role,
        )

    seeded = Users(
        owner=make("Ramesh Kumar", UserRole.CITIZEN),
        paralegal=make("Sunita Devi", UserRole.PARALEGAL),
        outsider=make("Arjun Mehta", UserRole.CITIZEN),
        admin=make("Kavita Rao", UserRole.ADMIN),
    )
    session.add_all([seeded.owner, seeded.paralegal, seeded.outsider, seeded.admin])
    await session.commit()
    return seeded


@pytest.fixture
async def assigned_issue(session: AsyncSession, users: Users) -> LegalIssue:
    """Aadhaar issue owned by the citizen and assigned to the paralegal."""
    issue = LegalIssue(
        id=uuid4(),
        owner_id=users.owner.id,
        assigned_paralegal_id=users.paralegal.id,
        issue_type=IssueType.AADHAAR,
        description="Name misspelt on Aadhaar card",
    )
    session.add(issue)
    await session.commit()
    return issue


@pytest.fixture
async def unassigned_issue(session: AsyncSession, users: Users) -> LegalIssue:
    issue = LegalIssue(
        id=uuid4(),
        owner_id=users.owner.id,
        issue_type=IssueType.PENSION,
        description="Pension stopped after March",
    )
    session.add(issue)
    await session.commit()
    return issue


# =============================================================================
# REALTIME
# =============================================================================


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def published(bus: EventBus) -> list:
    """Every event published on the bus, in order."""
    events = []
    bus.subscribe(EventKind.MESSAGE_DELIVERED, events.append)
    bus.subscribe(EventKind.NOTIFICATION_DELIVERED, events.append)
    return events


@pytest.fixture
def connections(bus: EventBus) -> ConnectionManager:
    manager = ConnectionManager()
    manager.attach(bus)
    return manager


class RecordingSocket:
    """Stands in for a WebSocket; keeps every frame sent to it."""

    def __init__(self):
        self.frames: list[dict] = []

    async def send_json(self, data) -> None:
        self.frames.append(data)


@pytest.fixture
def socket_factory():
    return RecordingSocket


# =============================================================================
# HTTP
# =============================================================================


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, name=user.full_name)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(session_factory, bus: EventBus):
    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_event_bus] = lambda: bus

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    """Build the Authorization header for a user."""
    return auth_headers
