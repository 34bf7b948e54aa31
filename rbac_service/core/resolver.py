"""
Access Resolver
=============================================================================
CONCEPT: Role Name -> Effective Permission Matrix

resolve_permissions() turns the role NAME a user holds into the matrix the
session will be checked against:

    "Supervisor"
      -> roles WHERE name = "Supervisor"            (exact, case-sensitive)
        -> permissions WHERE id = role.permission_id
          -> normalize_matrix(profile.matrix)

It is TOTAL: an unknown role name, a role without a permission_id, or a
dangling permission_id is a defined outcome (the all-false matrix), not an
exception. Only a failure of the store itself (StoreError) propagates to
the caller.

The result always has a four-flag record for every registered entity, so
consumers can write matrix["Roles"]["view"] without guarding.

DUPLICATE ROLE NAMES:
  Role names are unique at write time (see services/roles.py), but legacy
  data may still contain duplicates. The lookup goes through an explicit
  name -> role index that keeps the FIRST role the store returns for each
  name. Both stores return filter results in a stable order (insertion
  order in memory, ORDER BY id in SQL), so the winner is reproducible.

CACHING:
  Called once per sign-in. The session keeps the returned snapshot; it is
  NOT re-resolved on every check and does not notice later changes to the
  role or profile until the user signs in again.
=============================================================================
"""

from rbac_service.core.entities import ENTITY_REGISTRY, PermissionMatrix, build_default_matrix, normalize_matrix
from rbac_service.observability.logging import get_logger
from rbac_service.observability.metrics import record_resolution
from rbac_service.store.base import PERMISSIONS, ROLES, PersistenceStore, Record

logger = get_logger(__name__)


def index_roles_by_name(roles: list[Record]) -> dict[str, Record]:
    """Map role name -> role definition; the first role with a given name wins."""
    index: dict[str, Record] = {}
    for role in roles:
        index.setdefault(role["name"], role)
    return index


class AccessResolver:
    """Resolves role names to permission matrices against a PersistenceStore."""

    def __init__(self, store: PersistenceStore, registry: tuple[str, ...] = ENTITY_REGISTRY):
        self.store = store
        self.registry = registry

    async def find_role(self, role_name: str) -> Record | None:
        candidates = await self.store.get_by_filter(ROLES, name=role_name)
        return index_roles_by_name(candidates).get(role_name)

    async def resolve_permissions(self, role_name: str) -> PermissionMatrix:
        """
        Return the effective matrix for `role_name`.

        RETURNS:
          The role's profile matrix, normalized against the registry, or
          build_default_matrix() if the role or its profile does not exist.

        RAISES:
          StoreError only, when the store itself fails.
        """
        role = await self.find_role(role_name)
        if role is None:
            logger.info("role_not_found", role=role_name)
            record_resolution("role_missing")
            return build_default_matrix(self.registry)

        permission_id = role.get("permission_id")
        profile = await self.store.get_by_id(PERMISSIONS, permission_id) if permission_id else None
        if profile is None:
            logger.warning(
                "profile_not_found",
                role=role_name,
                role_id=role["id"],
                permission_id=permission_id,
            )
            record_resolution("profile_missing")
            return build_default_matrix(self.registry)

        record_resolution("resolved")
        logger.info("permissions_resolved", role=role_name, profile_id=profile["id"])
        return normalize_matrix(profile.get("matrix"), self.registry)


async def resolve_permissions(store: PersistenceStore, role_name: str) -> PermissionMatrix:
    """Functional shortcut for AccessResolver(store).resolve_permissions(role_name)."""
    return await AccessResolver(store).resolve_permissions(role_name)
