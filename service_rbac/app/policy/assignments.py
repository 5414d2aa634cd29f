"""
Role assignment management for RBAC Service.
"""

from typing import Optional

from shared.logging import get_logger
from shared.errors import NotFoundError, PersistenceAfterMutationError, StoreError
from shared.metrics import MetricsCollector
from .models import GroupingRule
from .roles import RoleHierarchyResolver
from .store import RuleStore


class RoleAssignmentManager:
    """Mutates grouping rules for a (subject, domain) pair.

    Every operation reloads the store, changes the snapshot and saves it.
    A save failing after the snapshot changed raises
    PersistenceAfterMutationError. Unchanged snapshots are not saved.
    """

    def __init__(self, store: RuleStore, resolver: RoleHierarchyResolver,
                 metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.resolver = resolver
        self.metrics = metrics
        self.logger = get_logger("rbac.role_assignments")

    def add(self, subject: str, role: str, domain: str) -> bool:
        """Give ``subject`` ``role`` in ``domain``; False if it already had it."""
        self.store.reload()

        rule = GroupingRule(subject=subject, role=role, domain=domain)
        added = self.store.add_grouping_rule(rule)
        if not added:
            self.logger.info("Role already assigned", subject=subject, role=role, domain=domain)
            self._record("add", "unchanged")
            return False

        self._persist("add", subject=subject, role=role, domain=domain)
        self.logger.info("Role added", subject=subject, role=role, domain=domain)
        self._record("add", "changed")
        return True

    def replace(self, subject: str, new_role: str, domain: str) -> bool:
        """Collapse every role of ``subject`` in ``domain`` into ``new_role``."""
        self.store.reload()
        self._require_assigned(subject, domain)

        old_rules = [
            GroupingRule(subject=subject, role=role, domain=domain)
            for role in self.resolver.direct_roles_of(subject, domain)
        ]
        new_rule = GroupingRule(subject=subject, role=new_role, domain=domain)

        if not self.store.update_grouping_rules(old_rules, new_rule):
            self.logger.info("Role replacement changed nothing",
                             subject=subject, role=new_role, domain=domain)
            self._record("replace", "unchanged")
            return False

        self._persist("replace", subject=subject, role=new_role, domain=domain)
        self.logger.info(
            "Roles replaced",
            subject=subject,
            domain=domain,
            old_roles=[rule.role for rule in old_rules],
            new_role=new_role
        )
        self._record("replace", "changed")
        return True

    def remove_all(self, subject: str, domain: str) -> bool:
        """Drop every role ``subject`` holds in ``domain``."""
        self.store.reload()
        self._require_assigned(subject, domain)

        old_rules = [
            GroupingRule(subject=subject, role=role, domain=domain)
            for role in self.resolver.direct_roles_of(subject, domain)
        ]
        removed = self.store.remove_grouping_rules(old_rules)
        if not removed:
            self._record("remove_all", "unchanged")
            return False

        self._persist("remove_all", subject=subject, domain=domain)
        self.logger.info("Roles removed", subject=subject, domain=domain, removed=removed)
        self._record("remove_all", "changed")
        return True

    def _require_assigned(self, subject: str, domain: str):
        if not self.resolver.roles_of(subject, domain):
            self._record("lookup", "not_found")
            raise NotFoundError(details={"subject": subject, "domain": domain})

    def _persist(self, operation: str, **context):
        try:
            self.store.persist()
        except StoreError as e:
            self.logger.error(
                "Policy save failed after mutation",
                operation=operation,
                error=e.message,
                **context
            )
            self._record(operation, "persist_failed")
            raise PersistenceAfterMutationError(
                details={"operation": operation, "cause": e.code, **context, **e.details}
            ) from e

    def _record(self, operation: str, result: str):
        if self.metrics:
            self.metrics.record_assignment(operation, result)
