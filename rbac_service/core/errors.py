"""
Access Control Error Taxonomy
=============================================================================
CONCEPT: Distinguishable Failures

Callers of the access control core must be able to tell these outcomes
apart, because each one is presented to the operator differently:

  PermissionDenied     -> "Access denied" notice (the session's matrix does
                          not grant the action)
  ReferentialConflict  -> "Cannot delete, still in use. Reassign first."
  RecordNotFound       -> the explicitly requested id does not exist
  ValidationFailed     -> the request itself is malformed (unknown entity,
                          unknown profile id, duplicate role name, ...)

Infrastructure failures of the store (network, credentials, ...) are NOT
part of this hierarchy. They are raised as rbac_service.store.base.StoreError
and propagate unchanged; this core never retries them.

"Role not found" / "profile not found" during permission RESOLUTION are not
errors at all: the resolver absorbs them into the all-false matrix.
=============================================================================
"""


class AccessControlError(Exception):
    """Base class for every user-presentable access control failure."""


class PermissionDenied(AccessControlError):
    """A gated operation was attempted without the required capability."""

    def __init__(self, entity: str, action: str):
        self.entity = entity
        self.action = action
        super().__init__(f"Access denied: '{action}' on '{entity}' is not granted to this session")


class ReferentialConflict(AccessControlError):
    """A delete (or rename) was rejected because other records still point at the target."""

    def __init__(self, collection: str, record_id: str, referenced_by: str, count: int = 0):
        self.collection = collection
        self.record_id = record_id
        self.referenced_by = referenced_by
        self.count = count
        super().__init__(
            f"Cannot modify {collection} record '{record_id}': it is still in use by "
            f"{count or 'one or more'} {referenced_by} record(s). "
            f"Reassign those {referenced_by} first."
        )


class RecordNotFound(AccessControlError):
    """An explicitly addressed record does not exist."""

    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record '{record_id}' not found")


class ValidationFailed(AccessControlError):
    """The request references unknown names or breaks a write-time rule."""
