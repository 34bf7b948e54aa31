"""
Access Session
=============================================================================
CONCEPT: Resolve Once, Check Many Times

An AccessSession is what a signed-in user carries around: who they are,
the role name they held at sign-in, and the permission matrix that role
resolved to AT THAT MOMENT.

    session = await sign_in(store, user)
    session.can("Roles", "view")          # navigation: True/False, silent
    session.require("Roles", "create")    # mutation: raises PermissionDenied

The matrix is a snapshot. If an administrator edits the profile or moves
the role to another profile, this session keeps its old matrix until the
user signs in again or calls refresh(). That staleness window is accepted;
nothing polls.

The snapshot is shared read-only by convention. Nothing here copies it on
every access, so consumers must never write into session.permissions.
=============================================================================
"""

from dataclasses import dataclass, field
from typing import Any, Mapping

from rbac_service.auth.rbac import check_permission, get_allowed_actions, require_permission
from rbac_service.core.entities import PermissionMatrix
from rbac_service.core.resolver import AccessResolver
from rbac_service.store.base import PersistenceStore


@dataclass(frozen=True)
class AccessSession:
    user_id: str
    email: str
    role: str
    permissions: PermissionMatrix = field(default_factory=dict)

    def can(self, entity: str, action: str) -> bool:
        return check_permission(self.permissions, entity, action)

    def require(self, entity: str, action: str) -> None:
        require_permission(
            self.permissions,
            entity,
            action,
            role=self.role,
            user_id=self.user_id,
        )

    def allowed_actions(self, entity: str) -> list[str]:
        return get_allowed_actions(self.permissions, entity)

    async def refresh(self, store: PersistenceStore) -> "AccessSession":
        """A new session for the same user with the matrix re-resolved now."""
        permissions = await AccessResolver(store).resolve_permissions(self.role)
        return AccessSession(self.user_id, self.email, self.role, permissions)


async def sign_in(store: PersistenceStore, user: Mapping[str, Any]) -> AccessSession:
    """Resolve the user's role and open a session holding the resulting matrix."""
    permissions = await AccessResolver(store).resolve_permissions(user["role"])
    return AccessSession(
        user_id=user["id"],
        email=user["email"],
        role=user["role"],
        permissions=permissions,
    )
