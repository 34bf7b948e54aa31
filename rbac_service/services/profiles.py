"""
Permission Profile Service
=============================================================================
CRUD for permission profiles, gated by the "Permisos" entity of the
caller's session:

    list / get       -> Permisos.view
    create           -> Permisos.create
    replace / toggle -> Permisos.edit
    delete           -> Permisos.delete

WRITES:
  - New profiles start from build_default_matrix() unless the caller
    supplies a matrix; supplied matrices are validated against the registry
    and stored complete (normalized).
  - toggle_capability() / set_capability() change exactly ONE cell. They
    work on a copy of the stored matrix, so every other cell (including rows
    the registry no longer knows) is written back untouched.

DELETE GUARD:
  A profile referenced by any role cannot be deleted. The service checks
  first (roles WHERE permission_id = id) and, as a second line, maps the
  store's own foreign-key refusal to the same ReferentialConflict. The
  roles are never re-pointed or nulled automatically.
=============================================================================
"""

from typing import Any, Mapping

from rbac_service.core.entities import (
    ACTIONS,
    PERMISSIONS_ENTITY,
    build_default_matrix,
    copy_matrix,
    normalize_matrix,
    validate_capability,
    validate_matrix,
)
from rbac_service.core.errors import RecordNotFound, ReferentialConflict, ValidationFailed
from rbac_service.core.session import AccessSession
from rbac_service.observability.logging import get_logger
from rbac_service.observability.metrics import record_referential_conflict
from rbac_service.store.base import PERMISSIONS, ROLES, PersistenceStore, Record, ReferencedRecordError

logger = get_logger(__name__)


def present_profile(profile: Record) -> Record:
    """Profile as exposed to callers: the matrix always complete."""
    return {
        "id": profile["id"],
        "name": profile["name"],
        "description": profile.get("description") or "",
        "matrix": normalize_matrix(profile.get("matrix")),
    }


class PermissionProfileService:
    def __init__(self, store: PersistenceStore, session: AccessSession):
        self.store = store
        self.session = session

    async def _load(self, profile_id: str) -> Record:
        profile = await self.store.get_by_id(PERMISSIONS, profile_id)
        if profile is None:
            raise RecordNotFound(PERMISSIONS, profile_id)
        return profile

    async def list_profiles(self) -> list[Record]:
        self.session.require(PERMISSIONS_ENTITY, "view")
        profiles = await self.store.list_all(PERMISSIONS, order_by="name")
        return [present_profile(p) for p in profiles]

    async def get_profile(self, profile_id: str) -> Record:
        self.session.require(PERMISSIONS_ENTITY, "view")
        return present_profile(await self._load(profile_id))

    async def create_profile(
        self,
        name: str,
        description: str = "",
        matrix: Mapping[str, Any] | None = None,
    ) -> Record:
        self.session.require(PERMISSIONS_ENTITY, "create")
        if not name or not name.strip():
            raise ValidationFailed("Profile name is required")

        if matrix is None:
            stored_matrix = build_default_matrix()
        else:
            validate_matrix(matrix)
            stored_matrix = normalize_matrix(matrix)

        profile = await self.store.insert(
            PERMISSIONS,
            {"name": name, "description": description or "", "matrix": stored_matrix},
        )
        logger.info("profile_created", profile_id=profile["id"], name=name, by=self.session.user_id)
        return present_profile(profile)

    async def update_profile(
        self,
        profile_id: str,
        name: str | None = None,
        description: str | None = None,
        matrix: Mapping[str, Any] | None = None,
    ) -> Record:
        """Rename/redescribe a profile and/or replace its whole matrix."""
        self.session.require(PERMISSIONS_ENTITY, "edit")
        await self._load(profile_id)

        changes: Record = {}
        if name is not None:
            if not name.strip():
                raise ValidationFailed("Profile name is required")
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        if matrix is not None:
            validate_matrix(matrix)
            changes["matrix"] = normalize_matrix(matrix)

        updated = await self.store.update_by_id(PERMISSIONS, profile_id, changes)
        if updated is None:
            raise RecordNotFound(PERMISSIONS, profile_id)
        logger.info(
            "profile_updated",
            profile_id=profile_id,
            fields=sorted(changes),
            by=self.session.user_id,
        )
        return present_profile(updated)

    async def set_capability(self, profile_id: str, entity: str, action: str, value: bool) -> Record:
        """Set one cell of the profile's matrix, leaving every other cell as stored."""
        self.session.require(PERMISSIONS_ENTITY, "edit")
        validate_capability(entity, action)
        profile = await self._load(profile_id)
        return await self._write_cell(profile, entity, action, lambda current: value)

    async def toggle_capability(self, profile_id: str, entity: str, action: str) -> Record:
        """Flip one cell of the profile's matrix, leaving every other cell as stored."""
        self.session.require(PERMISSIONS_ENTITY, "edit")
        validate_capability(entity, action)
        profile = await self._load(profile_id)
        return await self._write_cell(profile, entity, action, lambda current: not current)

    async def _write_cell(self, profile: Record, entity: str, action: str, change) -> Record:
        matrix = copy_matrix(profile.get("matrix") or {})
        stored_row = matrix.get(entity)
        row = dict(stored_row) if isinstance(stored_row, Mapping) else {}
        for missing in ACTIONS:
            row.setdefault(missing, False)

        new_value = bool(change(row[action] is True))
        row[action] = new_value
        matrix[entity] = row

        updated = await self.store.update_by_id(PERMISSIONS, profile["id"], {"matrix": matrix})
        if updated is None:
            raise RecordNotFound(PERMISSIONS, profile["id"])
        logger.info(
            "profile_cell_toggled",
            profile_id=profile["id"],
            entity=entity,
            action=action,
            value=new_value,
            by=self.session.user_id,
        )
        return present_profile(updated)

    async def delete_profile(self, profile_id: str) -> None:
        self.session.require(PERMISSIONS_ENTITY, "delete")
        await self._load(profile_id)

        referencing_roles = await self.store.get_by_filter(ROLES, permission_id=profile_id)
        if referencing_roles:
            raise self._conflict(profile_id, len(referencing_roles))

        try:
            deleted = await self.store.delete_by_id(PERMISSIONS, profile_id)
        except ReferencedRecordError as e:
            # A role was pointed at this profile between the check and the delete.
            raise self._conflict(profile_id, 0) from e

        if not deleted:
            raise RecordNotFound(PERMISSIONS, profile_id)
        logger.info("profile_deleted", profile_id=profile_id, by=self.session.user_id)

    def _conflict(self, profile_id: str, count: int) -> ReferentialConflict:
        record_referential_conflict(PERMISSIONS)
        logger.warning("referential_conflict", collection=PERMISSIONS, record_id=profile_id, roles=count)
        return ReferentialConflict(PERMISSIONS, profile_id, ROLES, count)
