"""
Role Definition Service
=============================================================================
CRUD for role definitions, gated by the "Roles" entity:

    list / get -> Roles.view
    create     -> Roles.create
    update     -> Roles.edit
    delete     -> Roles.delete

WRITE-TIME RULES:
  - permission_id must name an existing permission profile.
  - Role names are unique. Users reference roles by NAME, so two roles with
    the same name would make the resolver's answer depend on which one it
    found first.
  - A role cannot be renamed while users still hold its current name: the
    rename would silently drop those users to the all-false matrix.

DELETE GUARD:
  A role held by any user (active or not) cannot be deleted. Users hold
  the role by name and there is no foreign key for that join, so this
  pre-check is the only thing standing between a delete and orphaned
  users.
=============================================================================
"""

from rbac_service.core.entities import ROLES_ENTITY
from rbac_service.core.errors import RecordNotFound, ReferentialConflict, ValidationFailed
from rbac_service.core.session import AccessSession
from rbac_service.observability.logging import get_logger
from rbac_service.observability.metrics import record_referential_conflict
from rbac_service.store.base import (
    PERMISSIONS,
    ROLES,
    USERS,
    DuplicateRecordError,
    PersistenceStore,
    Record,
    ReferencedRecordError,
)

logger = get_logger(__name__)


def present_role(role: Record) -> Record:
    return {
        "id": role["id"],
        "name": role["name"],
        "description": role.get("description") or "",
        "permission_id": role.get("permission_id") or "",
    }


class RoleService:
    def __init__(self, store: PersistenceStore, session: AccessSession):
        self.store = store
        self.session = session

    async def _load(self, role_id: str) -> Record:
        role = await self.store.get_by_id(ROLES, role_id)
        if role is None:
            raise RecordNotFound(ROLES, role_id)
        return role

    async def _check_profile_exists(self, permission_id: str) -> None:
        if not permission_id or await self.store.get_by_id(PERMISSIONS, permission_id) is None:
            raise ValidationFailed(f"Permission profile '{permission_id}' does not exist")

    async def _check_name_free(self, name: str, role_id: str | None = None) -> None:
        if not name or not name.strip():
            raise ValidationFailed("Role name is required")
        existing = await self.store.get_by_filter(ROLES, name=name)
        if any(role["id"] != role_id for role in existing):
            raise ValidationFailed(f"A role named '{name}' already exists")

    async def list_roles(self) -> list[Record]:
        self.session.require(ROLES_ENTITY, "view")
        return [present_role(r) for r in await self.store.list_all(ROLES, order_by="name")]

    async def get_role(self, role_id: str) -> Record:
        self.session.require(ROLES_ENTITY, "view")
        return present_role(await self._load(role_id))

    async def create_role(self, name: str, permission_id: str, description: str = "") -> Record:
        self.session.require(ROLES_ENTITY, "create")
        await self._check_name_free(name)
        await self._check_profile_exists(permission_id)

        try:
            role = await self.store.insert(
                ROLES,
                {"name": name, "description": description or "", "permission_id": permission_id},
            )
        except DuplicateRecordError as e:
            raise ValidationFailed(f"A role named '{name}' already exists") from e
        logger.info("role_created", role_id=role["id"], name=name, permission_id=permission_id)
        return present_role(role)

    async def update_role(
        self,
        role_id: str,
        name: str | None = None,
        description: str | None = None,
        permission_id: str | None = None,
    ) -> Record:
        self.session.require(ROLES_ENTITY, "edit")
        role = await self._load(role_id)

        changes: Record = {}
        if name is not None and name != role["name"]:
            await self._check_name_free(name, role_id)
            holders = await self.store.get_by_filter(USERS, role=role["name"])
            if holders:
                raise self._conflict(role_id, len(holders))
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        if permission_id is not None:
            await self._check_profile_exists(permission_id)
            changes["permission_id"] = permission_id

        try:
            updated = await self.store.update_by_id(ROLES, role_id, changes)
        except DuplicateRecordError as e:
            raise ValidationFailed(f"A role named '{name}' already exists") from e
        if updated is None:
            raise RecordNotFound(ROLES, role_id)
        logger.info("role_updated", role_id=role_id, fields=sorted(changes))
        return present_role(updated)

    async def delete_role(self, role_id: str) -> None:
        self.session.require(ROLES_ENTITY, "delete")
        role = await self._load(role_id)

        holders = await self.store.get_by_filter(USERS, role=role["name"])
        if holders:
            raise self._conflict(role_id, len(holders))

        try:
            deleted = await self.store.delete_by_id(ROLES, role_id)
        except ReferencedRecordError as e:
            raise self._conflict(role_id, 0) from e

        if not deleted:
            raise RecordNotFound(ROLES, role_id)
        logger.info("role_deleted", role_id=role_id, name=role["name"])

    def _conflict(self, role_id: str, count: int) -> ReferentialConflict:
        record_referential_conflict(ROLES)
        logger.warning("referential_conflict", collection=ROLES, record_id=role_id, users=count)
        return ReferentialConflict(ROLES, role_id, USERS, count)
