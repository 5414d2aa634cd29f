"""
RBAC Service package for the Access Layer.

This package decides whether a subject may perform an action on an
object within a domain, and manages the role assignments behind that
decision. It provides:

- app.main: API surface for enforcement, role membership and health.
- app.policy: Rule model, rule store, role hierarchy, enforcement and
  role assignment.
- app.persistence: CSV policy file adapter.

Guidelines:
- Every request reloads the policy from storage before acting on it.
- Writers are serialized in-process; readers never see a half-mutated
  snapshot.
- Keep decisions deterministic and observable (metrics + logs).
"""
