"""
Test fixtures for the field-ops access-control engine.

Tests run against an in-memory SQLite database (aiosqlite, one shared
connection). Every test gets fresh tables and a fresh ``ConfigCache``, so no
configuration state leaks between tests. HTTP tests drive the FastAPI app
in-process through ``httpx.ASGITransport``.
"""
import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fieldops.config import settings
from fieldops.database import Base, get_db
from fieldops.main import app
from fieldops.middleware.auth import get_config_cache, hash_password
from fieldops.models import User
from fieldops.rbac import BuiltInRole, RoleRef, parse_role
from fieldops.services.access import AccessControl
from fieldops.services.cache import ConfigCache
from fieldops.services.credentials import AuthenticatedUser, TokenService
from fieldops.services.store import RecordStore

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
BASE_URL = "http://testserver"
PASSWORD = "admin123"

# Hashed once at import; bcrypt is slow.
PASSWORD_HASH = hash_password(PASSWORD)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def principal(role: RoleRef | str, user_id: int = 1, email: str = "user@example.com") -> AuthenticatedUser:
    """Build an ``AuthenticatedUser`` without touching the database."""
    if isinstance(role, str):
        role = parse_role(role)
    return AuthenticatedUser(
        id=user_id,
        email=email,
        first_name="Test",
        last_name="User",
        role=role,
    )


async def make_user(
    store: RecordStore,
    email: str,
    role: str,
    is_active: bool = True,
) -> User:
    """Insert a user with the shared test password."""
    return await store.add_user(User(
        email=email,
        password_hash=PASSWORD_HASH,
        first_name=email.split("@")[0].title(),
        last_name="Tester",
        role=role,
        is_active=is_active,
    ))


async def login(client: httpx.AsyncClient, email: str, password: str = PASSWORD) -> str:
    """Login and return the JWT token."""
    r = await client.post(f"{BASE_URL}/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, f"Login failed: {r.text}"
    return r.json()["access_token"]


def auth_headers(token: str) -> dict:
    """Return auth header dict for a given token."""
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db):
    return RecordStore(db)


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def cache():
    """A fresh configuration cache per test."""
    return ConfigCache()


@pytest.fixture
def tokens():
    return TokenService(
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        expiry_minutes=settings.JWT_EXPIRY_MINUTES,
    )


@pytest.fixture
def access(store, cache, tokens):
    return AccessControl(store, cache, tokens)


@pytest.fixture
def registry(access):
    return access.registry


@pytest.fixture
def config(access):
    return access.config


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def client(session_factory, cache):
    """Async HTTP client bound to the app, sharing the test database and cache."""

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_config_cache] = lambda: cache
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url=BASE_URL, timeout=30.0) as c:
        yield c
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def seeded(store):
    """One active user per role used by the HTTP tests, keyed by role name."""
    users = {}
    for role in (
        BuiltInRole.SENIOR_ADMIN,
        BuiltInRole.JUNIOR_ADMIN,
        BuiltInRole.ADMIN,
        BuiltInRole.MANAGER,
        BuiltInRole.ARTISAN,
        BuiltInRole.CUSTOMER,
        BuiltInRole.PROPERTY_MANAGER,
        BuiltInRole.CONTRACTOR,
    ):
        users[role.value] = await make_user(store, f"{role.value.lower()}@example.com", role.value)
    return users


@pytest_asyncio.fixture
async def senior_headers(client, seeded):
    """Auth headers for the senior admin."""
    return auth_headers(await login(client, "senior_admin@example.com"))


@pytest_asyncio.fixture
async def junior_headers(client, seeded):
    """Auth headers for the junior admin."""
    return auth_headers(await login(client, "junior_admin@example.com"))


@pytest_asyncio.fixture
async def customer_headers(client, seeded):
    """Auth headers for the customer."""
    return auth_headers(await login(client, "customer@example.com"))
