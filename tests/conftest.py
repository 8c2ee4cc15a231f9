import pytest
from datetime import date
from uuid import uuid4
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from checkin_service.main import app
from checkin_service.db.base import Base
from checkin_service.db.models import Event, UserProfile
from checkin_service.db.postgres import get_db
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from checkin_service.auth.middleware import JWTPayload, verify_token, permissions_manager, security
from checkin_service.programs.models import Child
from checkin_service.utils.timezone import local_today, utcnow

# In-memory SQLite shared across the connection pool
TEST_DATABASE_URL = "sqlite+aiosqlite://"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False,
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(scope="function")
async def db_session():
    """Create a fresh schema and session for each test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
async def client(db_session):
    """Create a test client with overridden dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def make_payload(role: str) -> JWTPayload:
    return JWTPayload(
        sub=str(uuid4()),
        roles=[role],
        permissions=permissions_manager.get_permissions_for_roles([role]),
    )


@pytest.fixture
def admin_payload():
    return make_payload("admin")


@pytest.fixture
def staff_payload():
    return make_payload("staff")


@pytest.fixture
def member_payload():
    return make_payload("member")


@pytest.fixture
def login():
    """
    Issue bearer headers for a payload.

    The token in the headers selects the caller, so headers from several
    logins can be mixed within one test.
    """
    tokens = {}

    async def token_payload(credentials: HTTPAuthorizationCredentials = Depends(security)) -> JWTPayload:
        payload = tokens.get(credentials.credentials)
        if payload is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
        return payload

    def _login(payload: JWTPayload):
        token = f"token-{payload.user_id}"
        tokens[token] = payload
        app.dependency_overrides[verify_token] = token_payload
        return {"Authorization": f"Bearer {token}"}
    return _login


def years_ago(years: float, today: date | None = None) -> date:
    """Birth date for someone `years` old today."""
    today = today or local_today()
    return date.fromordinal(today.toordinal() - int(years * 365.25) - 1)


@pytest.fixture
def make_event(db_session):
    async def _make(title: str = "Sunday Service") -> Event:
        event = Event(
            id=uuid4(),
            title=title,
            description=None,
            location="Main Hall",
            starts_at=None,
            status="scheduled",
            created_at=utcnow(),
        )
        db_session.add(event)
        await db_session.commit()
        return event
    return _make


@pytest.fixture
def make_profile(db_session):
    async def _make(first_name="Grace", last_name="Member", birthday=None, age=None, **kwargs) -> UserProfile:
        if age is not None:
            birthday = years_ago(age)
        profile = UserProfile(
            id=uuid4(),
            first_name=first_name,
            last_name=last_name,
            birthday=birthday,
            email=kwargs.get("email"),
            phone=kwargs.get("phone"),
            role=kwargs.get("role", "member"),
            created_at=utcnow(),
        )
        db_session.add(profile)
        await db_session.commit()
        return profile
    return _make


@pytest.fixture
def make_child(db_session):
    async def _make(parent_id, first_name="Sam", age=5, allergies=None, last_name="Member") -> Child:
        child = Child(
            id=uuid4(),
            parent_id=parent_id,
            first_name=first_name,
            last_name=last_name,
            date_of_birth=years_ago(age),
            allergies=allergies,
            notes=None,
            authorized_pickup_names=[],
            created_at=utcnow(),
            updated_at=utcnow(),
        )
        db_session.add(child)
        await db_session.commit()
        return child
    return _make
