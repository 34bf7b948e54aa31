"""
Entity Registry & Permission Matrix Construction
=============================================================================
CONCEPT: A Closed Registry of Protected Entities

Every protected resource category of the application has a fixed name in
ENTITY_REGISTRY. The registry is the single source of truth for:
  - the rows of every permission matrix
  - the all-false fallback the resolver hands out
  - the rows shown by every permission-editing screen

Adding a protected entity means adding its name here. Nothing else:
build_default_matrix() and normalize_matrix() are re-derived from the
registry on every call, so every existing profile automatically reads the
new entity as all-false (safe default) instead of "undefined".

THE MATRIX SHAPE:
  ENTITY -> ACTION -> bool

    {
        "Usuarios":   {"view": True,  "create": False, "edit": False, "delete": False},
        "Roles":      {"view": True,  "create": False, "edit": False, "delete": False},
        "Permisos":   {"view": False, "create": False, "edit": False, "delete": False},
        ...
    }

  The four actions are independent. edit=True does NOT imply view=True;
  any such convention belongs to the presentation layer.
=============================================================================
"""

import copy
from typing import Any, Iterable, Mapping

from rbac_service.core.errors import ValidationFailed


ENTITY_REGISTRY: tuple[str, ...] = (
    "Usuarios",
    "Roles",
    "Permisos",
    "Asistencia",
    "Actividades",
    "Estado Medidores",
    "Herramientas IA",
)

ACTIONS: tuple[str, ...] = ("view", "create", "edit", "delete")

# Entities that gate management of the access control records themselves.
USERS_ENTITY = "Usuarios"
ROLES_ENTITY = "Roles"
PERMISSIONS_ENTITY = "Permisos"

PermissionMatrix = dict[str, dict[str, bool]]


def empty_capabilities() -> dict[str, bool]:
    """A fresh all-false capability set."""
    return {action: False for action in ACTIONS}


def build_default_matrix(registry: Iterable[str] = ENTITY_REGISTRY) -> PermissionMatrix:
    """
    Build the all-false matrix for every entity in `registry`.

    Used when creating a new permission profile, as the resolver's fallback,
    and as the base that normalize_matrix() fills in. Every call returns a
    brand-new structure, so callers may mutate the result freely.
    """
    return {entity: empty_capabilities() for entity in registry}


def full_access_matrix(registry: Iterable[str] = ENTITY_REGISTRY) -> PermissionMatrix:
    """All four actions granted on every entity (the "Acceso Total" profile)."""
    return {entity: {action: True for action in ACTIONS} for entity in registry}


def normalize_matrix(
    matrix: Mapping[str, Any] | None,
    registry: Iterable[str] = ENTITY_REGISTRY,
) -> PermissionMatrix:
    """
    Return a complete matrix: one four-flag record per registered entity.

    Stored matrices are read through this function so consumers can index
    any registered entity and action without a defined-ness check:
      - missing entity rows become all-false
      - missing actions become False
      - anything that is not exactly True (None, "yes", 1) becomes False
      - rows for names outside the registry are left out

    The input is never modified.
    """
    normalized = build_default_matrix(registry)
    if not isinstance(matrix, Mapping):
        return normalized

    for entity, capabilities in normalized.items():
        stored = matrix.get(entity)
        if not isinstance(stored, Mapping):
            continue
        for action in ACTIONS:
            capabilities[action] = stored.get(action) is True

    return normalized


def validate_capability(entity: str, action: str) -> None:
    """Raise ValidationFailed unless (entity, action) names a real matrix cell."""
    if entity not in ENTITY_REGISTRY:
        raise ValidationFailed(f"Unknown entity '{entity}'")
    if action not in ACTIONS:
        raise ValidationFailed(f"Unknown action '{action}'")


def validate_matrix(matrix: Mapping[str, Any]) -> None:
    """Reject matrices that name entities or actions outside the registry."""
    for entity, capabilities in matrix.items():
        if entity not in ENTITY_REGISTRY:
            raise ValidationFailed(f"Unknown entity '{entity}'")
        if not isinstance(capabilities, Mapping):
            raise ValidationFailed(f"Capabilities for '{entity}' must be a mapping")
        for action in capabilities:
            if action not in ACTIONS:
                raise ValidationFailed(f"Unknown action '{action}' for entity '{entity}'")


def copy_matrix(matrix: Mapping[str, Any]) -> dict[str, Any]:
    """Deep copy of a stored matrix (keeps rows the registry no longer knows)."""
    return copy.deepcopy(dict(matrix))
