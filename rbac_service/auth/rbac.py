"""
Role-Based Access Control (RBAC) — Permission Checks
=============================================================================
CONCEPT: Roles -> Profiles -> Matrix

Permissions are never assigned to users directly. The chain is:

    User.role (a role NAME)
      -> RoleDefinition (looked up by name)
        -> PermissionProfile (looked up by RoleDefinition.permission_id)
          -> matrix: ENTITY -> ACTION -> bool

Many roles can share one profile ("Admin" and "Supervisor" both use
"Acceso Total"), so changing a profile changes every role that uses it.
The chain is walked ONCE per sign-in by rbac_service.core.resolver; the
resulting matrix is cached for the session and every check below reads
that cached matrix synchronously.

THE CHECK:
    permitted  <=>  matrix[entity][action] is True

Anything else (missing entity, missing action, False, None, "true") denies.
This is the "default deny" principle: a capability nobody granted is a
capability nobody has.

SELF-REFERENTIAL ENTITIES:
  "Usuarios", "Roles" and "Permisos" are ordinary registry rows. Managing
  users, roles and profiles is gated by the exact same check, with no
  special casing. A consequence worth knowing: a role without
  Permisos.edit cannot grant itself more access. That lockout is
  intentional.

TWO KINDS OF DENIAL:
  - Navigation (show a menu item, open a list screen): silent.
    Use check_permission() and simply hide/redirect.
  - Mutation (create, edit, delete): loud.
    Use require_permission(), which raises PermissionDenied so calling
    code can never mistake a denial for a successful no-op.
=============================================================================
"""

from typing import Any, Mapping

from rbac_service.core.entities import ACTIONS
from rbac_service.core.errors import PermissionDenied
from rbac_service.observability.logging import get_logger
from rbac_service.observability.metrics import record_permission_denied

logger = get_logger(__name__)


def check_permission(matrix: Mapping[str, Any] | None, entity: str, action: str) -> bool:
    """
    Check whether a permission matrix grants `action` on `entity`.

    RETURNS:
      True only when matrix[entity][action] is exactly True.

    EXAMPLE LOOKUPS (with the "Acceso Básico" profile):
        check_permission(basic, "Roles", "view")        -> True
        check_permission(basic, "Roles", "create")      -> False
        check_permission(basic, "Unknown", "view")      -> False  (default deny)
        check_permission(None, "Roles", "view")         -> False  (no session)
    """
    if not matrix:
        return False

    capabilities = matrix.get(entity)
    if not isinstance(capabilities, Mapping):
        return False

    return capabilities.get(action) is True


def require_permission(
    matrix: Mapping[str, Any] | None,
    entity: str,
    action: str,
    **context: Any,
) -> None:
    """
    Raise PermissionDenied unless the matrix grants `action` on `entity`.

    Extra keyword arguments (role, user_id, ...) are attached to the
    denial log entry.

    USAGE:
        require_permission(session.permissions, "Roles", "create", role=session.role)
        await role_service.create_role(...)
    """
    if not check_permission(matrix, entity, action):
        record_permission_denied(entity, action)
        logger.warning("permission_denied", entity=entity, action=action, **context)
        raise PermissionDenied(entity, action)


def get_allowed_actions(matrix: Mapping[str, Any] | None, entity: str) -> list[str]:
    """
    Actions the matrix grants on `entity`, in registry order.

    Convenience for building UI elements (which buttons to render):

        get_allowed_actions(basic, "Asistencia")  -> ["view", "create", "edit"]
    """
    return [action for action in ACTIONS if check_permission(matrix, entity, action)]
