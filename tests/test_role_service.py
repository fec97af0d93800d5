from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from opsdesk.core.exceptions import ConflictError, NotFoundError, ValidationError
from opsdesk.schemas.role import RoleCreateRequest, RoleUpdateRequest
from opsdesk.services.role_service import RoleService


class FakeRoleRepo:
    def __init__(self):
        self.roles = {}

    async def list_ordered(self, skip=0, limit=100):
        return sorted(self.roles.values(), key=lambda r: r.name)[skip:skip + limit]

    async def get_by_id(self, id):
        return self.roles.get(id)

    async def get_by_name(self, name):
        return next((r for r in self.roles.values() if r.name == name), None)

    async def create(self, **values):
        role = SimpleNamespace(id=uuid4(), **values)
        self.roles[role.id] = role
        return role

    async def update(self, id, **values):
        role = self.roles[id]
        for key, value in values.items():
            setattr(role, key, value)
        return role

    async def delete(self, id):
        return self.roles.pop(id, None) is not None


class FakeUserRepo:
    def __init__(self):
        self.users = []

    async def count_by_role(self, role_id):
        return sum(1 for u in self.users if u.role_id == role_id)

    async def count_by_roles(self, role_ids):
        return {role_id: await self.count_by_role(role_id) for role_id in role_ids}


@pytest.fixture
def repos():
    return SimpleNamespace(roles=FakeRoleRepo(), users=FakeUserRepo())


@pytest.fixture
def service(repos):
    return RoleService(repos.roles, repos.users)


async def test_create_role_dedupes_permissions(service):
    role = await service.create_role(
        RoleCreateRequest(name=" SUPERVISOR ", permissions=["view_dashboard", "manage_jobs", "view_dashboard"])
    )
    assert role.name == "SUPERVISOR"
    assert role.permissions == ["view_dashboard", "manage_jobs"]


async def test_create_role_rejects_unknown_permission(service, repos):
    with pytest.raises(ValidationError) as exc_info:
        await service.create_role(RoleCreateRequest(name="X", permissions=["view_dashboard", "teleport"]))
    assert exc_info.value.field == "permissions"
    assert repos.roles.roles == {}


async def test_create_role_duplicate_name(service):
    await service.create_role(RoleCreateRequest(name="SUPERVISOR"))
    with pytest.raises(ConflictError):
        await service.create_role(RoleCreateRequest(name="SUPERVISOR"))


async def test_list_roles_sorted(service):
    for name in ("TECHNICIAN", "FINANCE", "SUPERVISOR"):
        await service.create_role(RoleCreateRequest(name=name))
    assert [r.name for r in await service.list_roles()] == ["FINANCE", "SUPERVISOR", "TECHNICIAN"]


async def test_get_missing_role(service):
    with pytest.raises(NotFoundError):
        await service.get_role(uuid4())


async def test_update_replaces_permission_list(service):
    role = await service.create_role(RoleCreateRequest(name="SUPERVISOR", permissions=["view_dashboard"]))
    updated = await service.update_role(role.id, RoleUpdateRequest(permissions=["manage_jobs"]))
    assert updated.permissions == ["manage_jobs"]
    assert updated.name == "SUPERVISOR"


async def test_update_rejects_unknown_permission(service):
    role = await service.create_role(RoleCreateRequest(name="SUPERVISOR", permissions=["view_dashboard"]))
    with pytest.raises(ValidationError):
        await service.update_role(role.id, RoleUpdateRequest(permissions=["nope"]))
    assert role.permissions == ["view_dashboard"]


async def test_update_rename_to_taken_name(service):
    await service.create_role(RoleCreateRequest(name="FINANCE"))
    role = await service.create_role(RoleCreateRequest(name="SALES"))
    with pytest.raises(ConflictError):
        await service.update_role(role.id, RoleUpdateRequest(name="FINANCE"))


async def test_empty_update_is_a_no_op(service):
    role = await service.create_role(RoleCreateRequest(name="SALES", description="quotes"))
    assert await service.update_role(role.id, RoleUpdateRequest()) is role


async def test_delete_unused_role(service, repos):
    role = await service.create_role(RoleCreateRequest(name="SALES"))
    await service.delete_role(role.id)
    assert repos.roles.roles == {}


async def test_delete_role_in_use_is_refused(service, repos):
    role = await service.create_role(RoleCreateRequest(name="SUPERVISOR"))
    repos.users.users.append(SimpleNamespace(role_id=role.id))

    with pytest.raises(ConflictError) as exc_info:
        await service.delete_role(role.id)
    assert exc_info.value.message == "Role is in use"
    assert role.id in repos.roles.roles



async def test_count_users_per_role(service, repos):
    supervisor = await service.create_role(RoleCreateRequest(name="SUPERVISOR"))
    sales = await service.create_role(RoleCreateRequest(name="SALES"))
    repos.users.users.extend([SimpleNamespace(role_id=supervisor.id), SimpleNamespace(role_id=supervisor.id)])

    counts = await service.count_users(await service.list_roles())
    assert counts == {supervisor.id: 2, sales.id: 0}


async def test_storage_conflict_hides_driver_message(repos):
    async def create(**values):
        raise IntegrityError("INSERT INTO roles", {}, Exception("duplicate key value violates unique constraint \"roles_name_key\""))

    repos.roles.create = create
    service = RoleService(repos.roles, repos.users)

    with pytest.raises(ConflictError) as exc_info:
        await service.create_role(RoleCreateRequest(name="SALES"))
    assert exc_info.value.message == "Save failed"
    assert exc_info.value.details == {"detail": "Role name already in use"}
