"""
Authorization facade for RBAC Service.

Every call reloads the policy from storage before acting on it. Reads run
under a shared lock, role mutations under an exclusive one that spans the
whole reload, mutate and save sequence. Edits made to the policy file by
other processes between a reload and a save are not detected.
"""

from typing import List, Optional, Set

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..persistence.csv_file import CSVPolicyAdapter
from .assignments import RoleAssignmentManager
from .engine import EnforcementEngine
from .locking import ReadWriteLock
from .models import EnforcementDecision, GroupingRule, PermissionRule
from .roles import RoleHierarchyResolver
from .store import RuleStore


class Authorizer:
    """Operation surface of the policy engine."""

    def __init__(self, store: RuleStore, max_hierarchy_level: int = 10,
                 metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.resolver = RoleHierarchyResolver(store, max_hierarchy_level)
        self.engine = EnforcementEngine(store, self.resolver, metrics)
        self.assignments = RoleAssignmentManager(store, self.resolver, metrics)
        self.lock = ReadWriteLock()
        self.logger = get_logger("rbac.authorizer")

    @classmethod
    def from_file(cls, policy_path: str, max_hierarchy_level: int = 10,
                  metrics: Optional[MetricsCollector] = None) -> "Authorizer":
        """Build an authorizer backed by a CSV policy file."""
        store = RuleStore(CSVPolicyAdapter(policy_path), metrics)
        return cls(store, max_hierarchy_level, metrics)

    def enforce(self, subject: str, domain: str, obj: str, action: str) -> EnforcementDecision:
        with self.lock.read_locked():
            return self.engine.enforce(subject, domain, obj, action)

    def list_domains(self) -> Set[str]:
        with self.lock.read_locked():
            self.store.reload()
            return self.store.distinct_domains()

    def list_roles(self) -> Set[str]:
        with self.lock.read_locked():
            self.store.reload()
            return self.store.distinct_roles()

    def list_members(self, domain: str) -> List[GroupingRule]:
        with self.lock.read_locked():
            self.store.reload()
            return self.store.grouping_rules_filtered_by_domain(domain)

    def list_permission_rules(self) -> List[PermissionRule]:
        with self.lock.read_locked():
            self.store.reload()
            return self.store.all_permission_rules()

    def list_grouping_rules(self) -> List[GroupingRule]:
        with self.lock.read_locked():
            self.store.reload()
            return self.store.all_grouping_rules()

    def roles_of(self, subject: str, domain: str) -> List[str]:
        """Roles ``subject`` holds in ``domain``, inherited roles included."""
        with self.lock.read_locked():
            self.store.reload()
            return self.resolver.roles_of(subject, domain)

    def subjects_of(self, role: str, domain: str) -> List[str]:
        with self.lock.read_locked():
            self.store.reload()
            return self.resolver.subjects_of(role, domain)

    def assign_role(self, subject: str, role: str, domain: str) -> bool:
        with self.lock.write_locked():
            return self.assignments.add(subject, role, domain)

    def replace_role(self, subject: str, new_role: str, domain: str) -> bool:
        with self.lock.write_locked():
            return self.assignments.replace(subject, new_role, domain)

    def remove_all_roles(self, subject: str, domain: str) -> bool:
        with self.lock.write_locked():
            return self.assignments.remove_all(subject, domain)

    def is_storage_available(self) -> bool:
        return self.store.adapter.is_readable()
