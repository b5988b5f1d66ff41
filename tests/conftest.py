"""Shared test fixtures: in-memory database, API client and users per role."""

import os

# Settings are read from the environment on every call, so these must be in
# place before the application module is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "false"
os.environ["AUTO_SEED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ.pop("CRON_SECRET", None)
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("WAREHOUSE_MANAGER_EMAIL", None)

from functools import lru_cache  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from refurb_ops.api.main import app  # noqa: E402
from refurb_ops.core.security import create_access_token, get_password_hash  # noqa: E402
from refurb_ops.db import models  # noqa: E402,F401
from refurb_ops.db.base import Base  # noqa: E402
from refurb_ops.db.session import get_async_session  # noqa: E402
from refurb_ops.repositories.security import UserRepository  # noqa: E402
from refurb_ops.services.procurement import RackService  # noqa: E402
from refurb_ops.workflow.enums import Role  # noqa: E402
from refurb_ops.workflow.users import get_role_display_name  # noqa: E402

TEST_PASSWORD = "secret123"
API = "/api/v1"


@lru_cache(maxsize=1)
def _password_hash() -> str:
    # bcrypt is slow on purpose; hash once per run.
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
async def engine():
    """A fresh in-memory SQLite database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
async def client(session_maker):
    """HTTP client bound to the app with the test database injected."""

    async def _override_session():
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_async_session] = _override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_maker):
    """Factory creating an active user with TEST_PASSWORD."""

    async def _make(role: Role, email=None, active=True):
        async with session_maker() as s:
            user = await UserRepository(s).create_user(
                email=email or f"{role.value.lower()}-{uuid4().hex[:6]}@test.local",
                name=get_role_display_name(role),
                hashed_password=_password_hash(),
                role=role.value,
                active=active,
            )
            await s.commit()
            return user

    return _make


def bearer(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role)}"}


@pytest.fixture
def login_as(make_user):
    """Factory returning (user, auth headers) for a new user with the given role."""

    async def _login(role: Role, **kwargs):
        user = await make_user(role, **kwargs)
        return user, bearer(user)

    return _login


@pytest.fixture
async def racks(session_maker):
    """Default racks for every stage."""
    async with session_maker() as s:
        return await RackService(s).initialize_defaults()


@pytest.fixture
async def warehouse(login_as):
    _, headers = await login_as(Role.MIS_WAREHOUSE_EXECUTIVE)
    return headers


@pytest.fixture
def register_device(client, warehouse):
    """Factory: open a refurb batch (once) and register a device on it."""
    state = {}

    async def _register(**fields):
        if "batch_id" not in state:
            resp = await client.post(
                f"{API}/inward/batches",
                json={"type": "REFURB_PURCHASE", "po_invoice_no": "INV-1", "supplier": "Acme"},
                headers=warehouse,
            )
            assert resp.status_code == 201, resp.text
            state["batch_id"] = resp.json()["id"]
        payload = {"category": "LAPTOP", "brand": "Dell", "model": "Latitude 5490", **fields}
        resp = await client.post(
            f"{API}/inward/batches/{state['batch_id']}/devices", json=payload, headers=warehouse
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["device"]

    return _register


@pytest.fixture
def inspect_device(client, login_as):
    """Factory: start and submit an inspection for a registered device."""

    async def _inspect(device, **submission):
        _, headers = await login_as(Role.INSPECTION_ENGINEER)
        resp = await client.post(f"{API}/inspection/start/{device['barcode']}", headers=headers)
        assert resp.status_code == 200, resp.text
        resp = await client.post(f"{API}/inspection/{device['id']}/submit", json=submission, headers=headers)
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _inspect
