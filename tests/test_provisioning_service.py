from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy import select

from opsdesk.core.exceptions import ConflictError, NotFoundError, ValidationError
from opsdesk.core.security import verify_password
from opsdesk.models import User
from opsdesk.models.enums import AccessState
from opsdesk.repositories.employee_repository import EmployeeRepository
from opsdesk.repositories.role_repository import RoleRepository
from opsdesk.repositories.user_repository import UserRepository
from opsdesk.schemas.access import GrantAccessRequest
from opsdesk.services.provisioning_service import ProvisioningService


PASSWORD = "k3x9Qa2mZ"


class FakeEmployeeRepo:
    def __init__(self, *employees):
        self.employees = {e.id: e for e in employees}

    async def get_by_id(self, id):
        return self.employees.get(id)


class FakeRoleRepo:
    def __init__(self, *roles):
        self.roles = {r.id: r for r in roles}

    async def get_by_id(self, id):
        return self.roles.get(id)


class FakeUserRepo:
    def __init__(self):
        self.users = {}

    async def get_by_employee_id(self, employee_id):
        return next((u for u in self.users.values() if u.employee_id == employee_id), None)

    async def get_by_email(self, email):
        return next((u for u in self.users.values() if u.email.lower() == email.lower()), None)

    async def get_by_username(self, username):
        return next((u for u in self.users.values() if u.username == username), None)

    async def get_all(self, skip=0, limit=100):
        return list(self.users.values())[skip:skip + limit]

    async def search_users(self, query, skip=0, limit=100):
        return [u for u in self.users.values() if query in u.username or query in u.email]

    async def create(self, **values):
        user = SimpleNamespace(id=uuid4(), last_login=None, **values)
        self.users[user.id] = user
        return user

    async def update(self, id, **values):
        user = self.users[id]
        for key, value in values.items():
            setattr(user, key, value)
        return user

    async def update_if_version(self, user_id, expected_version, **values):
        user = self.users[user_id]
        if expected_version is not None and user.version != expected_version:
            return None
        return await self.update(user_id, version=user.version + 1, **values)


def employee(id, **fields):
    defaults = dict(name=None, first_name=None, last_name=None, email=None, department=None, position=None)
    defaults.update(fields)
    return SimpleNamespace(id=id, **defaults)


def role(name, *permissions):
    return SimpleNamespace(id=uuid4(), name=name, permissions=list(permissions))


@pytest.fixture
def supervisor():
    return role("SUPERVISOR", "view_dashboard", "manage_jobs")


@pytest.fixture
def repos(supervisor):
    return SimpleNamespace(
        employees=FakeEmployeeRepo(
            employee(1, first_name="Jane", last_name="Doe", email="jane@opsdesk.io"),
            employee(2, name="Sam Field"),
        ),
        roles=FakeRoleRepo(supervisor),
        users=FakeUserRepo(),
    )


@pytest.fixture
def service(repos):
    return ProvisioningService(repos.employees, repos.users, repos.roles)


def grant_request(**fields):
    data = {"email": "jane@opsdesk.io", "password": PASSWORD}
    data.update(fields)
    return GrantAccessRequest(**data)


async def test_employee_without_user_has_no_access(service):
    view = await service.get_access(1)
    assert view.state is AccessState.NO_ACCESS
    assert view.user is None
    assert view.employee.display_name == "Jane Doe"


async def test_first_grant_copies_role_permissions(service, repos, supervisor):
    user = await service.grant(1, grant_request(role_id=supervisor.id))

    assert user.role_label == "SUPERVISOR"
    assert user.role_id == supervisor.id
    assert user.permissions == ["view_dashboard", "manage_jobs"]
    assert user.username == "jane@opsdesk.io"
    assert user.version == 1
    assert verify_password(PASSWORD, user.hashed_password)

    view = await service.get_access(1)
    assert view.state is AccessState.ACTIVE
    assert view.role_name == "SUPERVISOR"
    assert not view.customized


async def test_snapshot_is_a_copy_of_the_role(service, supervisor):
    user = await service.grant(1, grant_request(role_id=supervisor.id))
    supervisor.permissions.append("view_finance")
    assert "view_finance" not in user.permissions


async def test_repeated_grants_target_one_user(service, repos, supervisor):
    first = await service.grant(1, grant_request(role_id=supervisor.id))
    second = await service.grant(1, grant_request(role_id=supervisor.id, password=""))
    assert first.id == second.id
    assert len(repos.users.users) == 1


async def test_supervisor_customization(service, repos, supervisor):
    await service.grant(1, grant_request(role_id=supervisor.id))
    user = await service.grant(
        1,
        grant_request(
            role_id=supervisor.id,
            password=None,
            permissions=["view_dashboard", "manage_jobs", "view_finance"],
        ),
    )

    assert user.role_label == "SUPERVISOR"
    assert user.permissions == ["view_dashboard", "manage_jobs", "view_finance"]
    assert supervisor.permissions == ["view_dashboard", "manage_jobs"]

    view = await service.get_access(1)
    assert view.customized
    assert user.version == 2


async def test_removed_role_is_not_customized(service, repos, supervisor):
    await service.grant(1, grant_request(role_id=supervisor.id, permissions=["view_dashboard"]))
    del repos.roles.roles[supervisor.id]

    view = await service.get_access(1)
    assert view.state is AccessState.ACTIVE
    assert view.role_name is None
    assert not view.customized


async def test_manual_contractor_role(service):
    user = await service.grant(
        2,
        grant_request(
            email="sam@opsdesk.io",
            role_label="Contractor",
            permissions=["view_quote", "create_quote"],
        ),
    )
    assert user.role_label == "Contractor"
    assert user.role_id is None
    assert user.permissions == ["view_quote", "create_quote"]

    view = await service.get_access(2)
    assert view.role_name is None
    assert not view.customized


async def test_update_overwrites_instead_of_merging(service, supervisor):
    await service.grant(1, grant_request(role_id=supervisor.id))
    user = await service.grant(
        1, grant_request(password=None, role_label="Contractor", permissions=["view_quote"])
    )
    assert user.role_label == "Contractor"
    assert user.role_id is None
    assert user.permissions == ["view_quote"]
    assert user.version == 2


async def test_blank_password_keeps_hash(service, supervisor):
    user = await service.grant(1, grant_request(role_id=supervisor.id))
    original_hash = user.hashed_password

    user = await service.grant(1, grant_request(role_id=supervisor.id, password=""))
    assert user.hashed_password == original_hash


async def test_new_password_replaces_hash(service, supervisor):
    await service.grant(1, grant_request(role_id=supervisor.id))
    user = await service.grant(1, grant_request(role_id=supervisor.id, password="n3wPassw0rd"))
    assert verify_password("n3wPassw0rd", user.hashed_password)


async def test_unknown_employee(service, supervisor):
    with pytest.raises(NotFoundError):
        await service.grant(99, grant_request(role_id=supervisor.id))


VALIDATION_CASES = [
    ("email", lambda role_id: {"email": None, "role_id": role_id}),
    ("password", lambda role_id: {"password": None, "role_id": role_id}),
    ("password", lambda role_id: {"password": "short", "role_id": role_id}),
    ("role", lambda role_id: {}),
    ("role", lambda role_id: {"role_id": role_id, "role_label": "Contractor", "permissions": ["view_quote"]}),
    ("permissions", lambda role_id: {"role_label": "Contractor"}),
    ("permissions", lambda role_id: {"role_label": "Contractor", "permissions": ["view_quote", "fly"]}),
    ("permissions", lambda role_id: {"role_id": role_id, "permissions": ["fly"]}),
    ("role_id", lambda role_id: {"role_id": uuid4()}),
]


@pytest.mark.parametrize("field,build", VALIDATION_CASES)
async def test_validation_happens_before_persistence(service, repos, supervisor, field, build):
    with pytest.raises(ValidationError) as exc_info:
        await service.grant(1, grant_request(**build(supervisor.id)))
    assert exc_info.value.field == field
    assert repos.users.users == {}


async def test_email_taken_by_another_employee(service, supervisor):
    await service.grant(1, grant_request(role_id=supervisor.id))
    with pytest.raises(ConflictError) as exc_info:
        await service.grant(2, grant_request(role_id=supervisor.id))
    assert exc_info.value.message == "Save failed"
    assert exc_info.value.status_code == 409


async def test_username_taken_by_another_employee(service, supervisor):
    await service.grant(1, grant_request(role_id=supervisor.id, username="jdoe"))
    with pytest.raises(ConflictError):
        await service.grant(2, grant_request(email="sam@opsdesk.io", role_id=supervisor.id, username="jdoe"))


async def test_stale_expected_version(service, supervisor):
    await service.grant(1, grant_request(role_id=supervisor.id))
    await service.grant(1, grant_request(role_id=supervisor.id, password=None, expected_version=1))

    with pytest.raises(ConflictError):
        await service.grant(
            1, grant_request(role_label="Contractor", permissions=[], password=None, expected_version=1)
        )
    view = await service.get_access(1)
    assert view.user.role_label == "SUPERVISOR"
    assert view.user.version == 2


async def test_concurrent_grants_without_version_last_write_wins(service, supervisor):
    await service.grant(1, grant_request(role_id=supervisor.id))
    await service.grant(1, grant_request(password=None, role_label="Contractor", permissions=["view_quote"]))
    await service.grant(1, grant_request(password=None, role_id=supervisor.id, permissions=["manage_jobs"]))

    view = await service.get_access(1)
    assert view.user.role_label == "SUPERVISOR"
    assert view.user.permissions == ["manage_jobs"]


async def test_list_users(service, supervisor):
    await service.grant(1, grant_request(role_id=supervisor.id))
    await service.grant(2, grant_request(email="sam@opsdesk.io", role_id=supervisor.id))

    assert len(await service.list_users()) == 2
    assert [u.email for u in await service.list_users(query="sam")] == ["sam@opsdesk.io"]


@pytest.fixture
def db_service(db_session, monkeypatch):
    """Provisioning against real tables with the uniqueness pre-check skipped."""
    service = ProvisioningService(
        EmployeeRepository(db_session), UserRepository(db_session), RoleRepository(db_session)
    )

    async def no_precheck(*args, **kwargs):
        return None

    monkeypatch.setattr(service, "_check_unique", no_precheck)
    return service


async def stored_users(db_session):
    result = await db_session.execute(
        select(User.employee_id, User.email, User.permissions).order_by(User.employee_id)
    )
    return [tuple(row) for row in result.all()]


async def test_unique_constraint_on_create_is_a_save_failure(db_service, db_session, make_employee):
    jane_id = (await make_employee(name="Jane Doe", email="jane@opsdesk.io")).id
    sam_id = (await make_employee(name="Sam Field")).id
    await db_service.grant(jane_id, grant_request(role_label="Contractor", permissions=["view_dashboard"]))
    await db_session.commit()

    with pytest.raises(ConflictError) as exc_info:
        await db_service.grant(sam_id, grant_request(role_label="Contractor", permissions=["view_quote"]))
    await db_session.rollback()

    assert exc_info.value.message == "Save failed"
    assert exc_info.value.details == {"detail": "Username or email already in use"}
    assert await stored_users(db_session) == [(jane_id, "jane@opsdesk.io", ["view_dashboard"])]


async def test_unique_constraint_on_update_keeps_previous_access(db_service, db_session, make_employee):
    jane_id = (await make_employee(name="Jane Doe")).id
    sam_id = (await make_employee(name="Sam Field")).id
    await db_service.grant(jane_id, grant_request(role_label="Contractor", permissions=["view_dashboard"]))
    await db_service.grant(
        sam_id, grant_request(email="sam@opsdesk.io", role_label="Contractor", permissions=["view_quote"])
    )
    await db_session.commit()

    with pytest.raises(ConflictError) as exc_info:
        await db_service.grant(
            sam_id, grant_request(password=None, role_label="Contractor", permissions=["create_quote"])
        )
    await db_session.rollback()

    assert "UNIQUE" not in str(exc_info.value.details)
    assert await stored_users(db_session) == [
        (jane_id, "jane@opsdesk.io", ["view_dashboard"]),
        (sam_id, "sam@opsdesk.io", ["view_quote"]),
    ]


async def test_version_is_incremented_by_the_database(db_session, make_user):
    user_id = (await make_user("jane@opsdesk.io", version=1)).id
    repo = UserRepository(db_session)

    await repo.update_if_version(user_id, None, role_label="FINANCE")
    updated = await repo.update_if_version(user_id, None, role_label="SALES")
    assert updated.version == 3

    assert await repo.update_if_version(user_id, 2, role_label="HR") is None
    assert (await repo.update_if_version(user_id, 3, role_label="HR")).version == 4
