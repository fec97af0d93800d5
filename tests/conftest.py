import os

# Settings are read at import time, so these must be set before opsdesk is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-signing-secret-for-the-suite-0123456789"
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from types import SimpleNamespace  # noqa: E402
from uuid import uuid4  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from opsdesk.core.security import hash_password  # noqa: E402
from opsdesk.database import get_db  # noqa: E402
from opsdesk.main import app  # noqa: E402
from opsdesk.models import Base, Employee, Role, User  # noqa: E402
from opsdesk.services.auth_service import AuthService  # noqa: E402


TEST_PASSWORD = "Passw0rd-123"


@pytest.fixture
async def engine():
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
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_employee(db_session):
    async def _make(**fields):
        employee = Employee(**fields)
        db_session.add(employee)
        await db_session.commit()
        return employee
    return _make


@pytest.fixture
def make_role(db_session):
    async def _make(name, permissions, description=None):
        role = Role(name=name, permissions=list(permissions), description=description)
        db_session.add(role)
        await db_session.commit()
        return role
    return _make


@pytest.fixture
def make_user(db_session, make_employee):
    async def _make(email, role_label="USER", permissions=(), role_id=None, password=TEST_PASSWORD, **fields):
        employee = await make_employee(name=email.split("@")[0], email=email)
        user = User(
            username=fields.pop("username", email),
            email=email,
            hashed_password=hash_password(password),
            role_label=role_label,
            role_id=role_id,
            permissions=list(permissions),
            employee_id=employee.id,
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        return user
    return _make


def token_for(role_label="USER", permissions=(), issued_at=None, user_id=None):
    """Issue a token for an ad-hoc principal without touching the database."""
    user = SimpleNamespace(
        id=user_id or uuid4(),
        username="tester",
        role_label=role_label,
        permissions=list(permissions),
    )
    return AuthService(user_repository=None).issue_token(user, issued_at=issued_at).access_token


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
