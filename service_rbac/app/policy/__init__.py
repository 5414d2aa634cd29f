"""
Policy engine package.

Holds the rule model and the components that evaluate and mutate it:

- models: PermissionRule, GroupingRule, Effect, EnforcementDecision and
  the HTTP request/response models.
- store: In-memory snapshot of the policy with reload/persist.
- roles: Role hierarchy resolution over grouping rules.
- engine: Enforcement decisions (explicit deny wins, default deny).
- assignments: Role assignment mutations with persistence.
- locking: Readers/writer lock guarding the shared store.
- authorizer: Facade combining the above under the locking discipline.
"""

from .models import Effect, PermissionRule, GroupingRule, EnforcementDecision
from .authorizer import Authorizer

__all__ = [
    "Effect",
    "PermissionRule",
    "GroupingRule",
    "EnforcementDecision",
    "Authorizer",
]
