import datetime as dt
import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise


TEST_DB_URL = "sqlite://:memory:"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ.pop("ADMIN_PASSWORD", None)

from app.config import settings  # noqa: E402
from app.core import db as db_module  # noqa: E402
from app.core.bootstrap import ensure_system_organization, install_services  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.core.sessions import DatabaseSessionStore, InMemorySessionStore  # noqa: E402
from app.main import app  # noqa: E402
from app.models.enums import UserRole  # noqa: E402
from app.repositories import InMemoryAccountRepository, TortoiseAccountRepository  # noqa: E402
from app.services import AccountService, ActivityRecorder, Authenticator  # noqa: E402


class FakeClock:
    """Controllable UTC clock for session expiry and activity ordering."""

    def __init__(self, start: dt.datetime | None = None):
        self.now = start or dt.datetime(2024, 1, 1, 9, 0, tzinfo=dt.timezone.utc)

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += dt.timedelta(**kwargs)


# ---------------------------------------------------------------------------
# In-memory wiring (unit tests)
# ---------------------------------------------------------------------------
@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repo(clock):
    return InMemoryAccountRepository(clock=clock)


@pytest.fixture
def sessions(clock):
    return InMemorySessionStore(clock=clock)


@pytest.fixture
def recorder(repo):
    return ActivityRecorder(repo)


@pytest.fixture
def authenticator(repo, sessions, recorder, clock):
    return Authenticator(repo, sessions, recorder, session_ttl=dt.timedelta(hours=1), clock=clock)


@pytest.fixture
def accounts(repo, recorder):
    return AccountService(repo, recorder)


@pytest.fixture
def make_user(repo):
    """
    Factory fixture to insert users straight into the in-memory repository.
    """

    async def _make_user(role: UserRole = UserRole.MEDICAL_REPRESENTATIVE, password: str = "UserPass!23", **extra):
        suffix = uuid.uuid4().hex[:6]
        fields = {
            "username": f"user_{suffix}",
            "password": hash_password(password),
            "full_name": f"User {suffix}",
            "email": f"{suffix}@example.com",
            "role": role,
        }
        fields.update(extra)
        return await repo.create_user(fields)

    return _make_user


# ---------------------------------------------------------------------------
# Database + HTTP wiring (integration tests)
# ---------------------------------------------------------------------------
async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await db_module.init_db(TEST_DB_URL, generate_schemas=True)


@pytest_asyncio.fixture
async def db():
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client(db):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    Services are wired by hand because the transport does not run startup events.
    """
    repository = TortoiseAccountRepository()
    install_services(app, settings, repository, DatabaseSessionStore())
    await ensure_system_organization(repository)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest_asyncio.fixture
async def create_user(client):
    """
    Factory fixture to create users directly through the app's repository.
    Returns (user record, plain password).
    """

    async def _create_user(role: UserRole = UserRole.MEDICAL_REPRESENTATIVE, password: str = "UserPass!23", **extra):
        suffix = uuid.uuid4().hex[:6]
        fields = {
            "username": f"user_{suffix}",
            "password": hash_password(password),
            "full_name": f"User {suffix}",
            "email": f"{suffix}@example.com",
            "role": role,
        }
        fields.update(extra)
        user = await app.state.repository.create_user(fields)
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def create_admin(create_user):
    async def _create_admin(password: str = "AdminPass!23"):
        return await create_user(role=UserRole.SUPER_ADMIN, password=password)

    return _create_admin


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    The cookie jar is cleared so later requests authenticate only through the header.
    """

    async def _get_headers(username: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/auth/login",
            json={"username": username, "password": password},
        )
        assert resp.status_code == 200, resp.text
        client.cookies.clear()
        token = resp.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
