"""
Enforcement engine for RBAC Service.
"""

import time
from typing import List, Optional

from shared.logging import get_logger
from shared.errors import EngineError, StoreError
from shared.metrics import MetricsCollector
from .models import Effect, EnforcementDecision, PermissionRule
from .roles import RoleHierarchyResolver
from .store import RuleStore

NO_MATCH_REASON = "No applicable rules matched"


class EnforcementEngine:
    """Decides requests against the permission rules.

    A rule applies when its subject is the requesting subject or one of
    the roles it holds in the request domain, and domain, object and
    action are equal. Any applicable deny rule wins, otherwise any
    applicable allow rule allows, otherwise the request is denied.
    """

    def __init__(self, store: RuleStore, resolver: RoleHierarchyResolver,
                 metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.resolver = resolver
        self.metrics = metrics
        self.logger = get_logger("rbac.enforcement_engine")

    def enforce(self, subject: str, domain: str, obj: str, action: str) -> EnforcementDecision:
        """Reload the policy and decide the request."""
        start_time = time.time()

        try:
            self.store.reload()
        except StoreError as e:
            self.logger.error("Policy reload failed during enforcement", error=e.message)
            raise EngineError("Failed to load policy", {"cause": e.code, **e.details}) from e

        decision = self.evaluate(subject, domain, obj, action)

        if self.metrics:
            self.metrics.record_decision(decision.allowed, time.time() - start_time)

        return decision

    def evaluate(self, subject: str, domain: str, obj: str, action: str) -> EnforcementDecision:
        """Decide the request against one snapshot of the store."""
        permission_rules, grouping_rules = self.store.snapshot()
        effective_subjects = {subject, *self.resolver.roles_of(subject, domain, grouping_rules)}
        matched = self.matching_rules(effective_subjects, domain, obj, action, permission_rules)

        denied = next((rule for rule in matched if rule.effect == Effect.DENY), None)
        if denied is not None:
            decision = EnforcementDecision(allowed=False, matched_rule=denied,
                                           reason="Explicit deny rule matched")
        elif matched:
            decision = EnforcementDecision(allowed=True, matched_rule=matched[0],
                                           reason="Allow rule matched")
        else:
            decision = EnforcementDecision(allowed=False, reason=NO_MATCH_REASON)

        self.logger.debug(
            "Enforcement result",
            subject=subject,
            domain=domain,
            object=obj,
            action=action,
            allowed=decision.allowed,
            matched_rule=decision.explanation
        )

        return decision

    def matching_rules(self, effective_subjects, domain: str, obj: str, action: str,
                       permission_rules: Optional[List[PermissionRule]] = None) -> List[PermissionRule]:
        """Permission rules applicable to the request, in stored order."""
        if permission_rules is None:
            permission_rules = self.store.all_permission_rules()
        return [
            rule for rule in permission_rules
            if rule.subject in effective_subjects
            and rule.domain == domain
            and rule.object == obj
            and rule.action == action
        ]
