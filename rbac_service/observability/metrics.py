"""
Access Control Metrics with Prometheus
=============================================================================
CONCEPT: What to Measure in an Authorization Layer?

Logs answer "what happened to THIS request". Metrics answer "what is
happening across ALL requests":

  - "Are sign-ins suddenly resolving to empty matrices?"
      -> a role was renamed or a profile deleted out from under users
  - "Which entity/action pairs are denied most often?"
      -> a profile is missing a capability people actually need
  - "How often do operators hit the referential guards?"
      -> the UI should show which roles still use a profile

METRICS IN THIS MODULE:

  1. permission_resolutions_total{outcome}
     outcome = resolved | role_missing | profile_missing
     A rising role_missing/profile_missing rate means sessions are being
     handed the all-false fallback matrix.

  2. permission_denials_total{entity, action}
     Gated operations rejected for lack of a capability. A denied request
     stops at its first check, so each rejection is counted once.

  3. referential_conflicts_total{collection}
     Deletes (or renames) rejected because another record still points at
     the target.

Prometheus scrapes them from GET /metrics (see api/health.py).
=============================================================================
"""

from prometheus_client import Counter


permission_resolutions_total = Counter(
    name="permission_resolutions_total",
    documentation="Role name -> permission matrix resolutions, by outcome",
    labelnames=["outcome"],
)

permission_denials_total = Counter(
    name="permission_denials_total",
    documentation="Gated operations rejected for a missing capability, by entity and action",
    labelnames=["entity", "action"],
)

referential_conflicts_total = Counter(
    name="referential_conflicts_total",
    documentation="Operations rejected because the target record is still referenced",
    labelnames=["collection"],
)


# =============================================================================
# Helper Functions
# =============================================================================
# Callers use these instead of touching the Counter objects so label names
# stay consistent across the code base.
# =============================================================================


def record_resolution(outcome: str) -> None:
    """Count one resolve_permissions() call.

    outcome: "resolved", "role_missing" or "profile_missing".
    """
    permission_resolutions_total.labels(outcome=outcome).inc()


def record_permission_denied(entity: str, action: str) -> None:
    """Count one rejected gated operation."""
    permission_denials_total.labels(entity=entity, action=action).inc()


def record_referential_conflict(collection: str) -> None:
    """Count one rejected delete/rename on `collection` ("roles", "permissions")."""
    referential_conflicts_total.labels(collection=collection).inc()
