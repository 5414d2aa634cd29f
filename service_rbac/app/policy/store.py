"""
In-memory rule store for RBAC Service.
"""

import threading
from typing import List, Optional, Sequence, Set, Tuple, Union

from shared.logging import get_logger
from shared.errors import StoreError
from shared.metrics import MetricsCollector
from ..persistence.csv_file import CSVPolicyAdapter, PolicyRow
from .models import Effect, PermissionRule, GroupingRule

StoredRule = Union[PermissionRule, GroupingRule]

PERMISSION_TYPE = "p"
GROUPING_TYPE = "g"


class RuleStore:
    """Snapshot of the persisted policy.

    Rules keep their file order so a save only moves the rows a mutation
    touched. Snapshot swaps and reads are guarded by an internal mutex;
    callers serialize whole reload/mutate/persist sequences themselves.
    """

    def __init__(self, adapter: CSVPolicyAdapter, metrics: Optional[MetricsCollector] = None):
        self.adapter = adapter
        self.metrics = metrics
        self.logger = get_logger("rbac.rule_store")
        self._rules: List[StoredRule] = []
        self._mutex = threading.Lock()

    def reload(self) -> None:
        """Replace the snapshot with the persisted policy.

        On failure the previous snapshot is left untouched.
        """
        try:
            rules = [self._row_to_rule(row) for row in self.adapter.load_rows()]
        except StoreError:
            self._record_reload("error")
            raise

        with self._mutex:
            self._rules = rules
        self._record_reload("ok")
        self.logger.debug("Policy reloaded", rules=len(rules))

    def persist(self) -> None:
        """Write the snapshot back to storage, replacing its contents."""
        with self._mutex:
            rows = [self._rule_to_row(rule) for rule in self._rules]
        try:
            self.adapter.save_rows(rows)
        except StoreError:
            self._record_save("error")
            raise
        self._record_save("ok")

    def snapshot(self) -> Tuple[List[PermissionRule], List[GroupingRule]]:
        """Permission and grouping rules read from the same snapshot."""
        with self._mutex:
            rules = list(self._rules)
        return (
            [rule for rule in rules if isinstance(rule, PermissionRule)],
            [rule for rule in rules if isinstance(rule, GroupingRule)],
        )

    def all_permission_rules(self) -> List[PermissionRule]:
        with self._mutex:
            return [rule for rule in self._rules if isinstance(rule, PermissionRule)]

    def all_grouping_rules(self) -> List[GroupingRule]:
        with self._mutex:
            return [rule for rule in self._rules if isinstance(rule, GroupingRule)]

    def grouping_rules_filtered_by_domain(self, domain: str) -> List[GroupingRule]:
        """All grouping rules whose domain equals ``domain``."""
        return [rule for rule in self.all_grouping_rules() if rule.domain == domain]

    def distinct_domains(self) -> Set[str]:
        with self._mutex:
            return {rule.domain for rule in self._rules}

    def distinct_roles(self) -> Set[str]:
        return {rule.role for rule in self.all_grouping_rules()}

    def has_grouping_rule(self, rule: GroupingRule) -> bool:
        with self._mutex:
            return rule in self._rules

    def add_grouping_rule(self, rule: GroupingRule) -> bool:
        """Append ``rule`` unless an equal rule is already stored."""
        with self._mutex:
            if rule in self._rules:
                return False
            self._rules.append(rule)
            return True

    def remove_grouping_rules(self, rules: Sequence[GroupingRule]) -> int:
        """Remove every stored occurrence of ``rules``; return how many went."""
        targets = set(rules)
        with self._mutex:
            kept = [rule for rule in self._rules if rule not in targets]
            removed = len(self._rules) - len(kept)
            self._rules = kept
        return removed

    def update_grouping_rules(self, old_rules: Sequence[GroupingRule],
                              new_rule: GroupingRule) -> bool:
        """Swap ``old_rules`` for the single ``new_rule`` in one step.

        The new rule takes the position of the first old rule. Returns
        False and changes nothing when an old rule is missing or when the
        swap would leave the store as it is.
        """
        targets = set(old_rules)
        if not targets:
            return False

        with self._mutex:
            if any(rule not in self._rules for rule in targets):
                return False
            if targets == {new_rule} and self._rules.count(new_rule) == 1:
                return False

            updated: List[StoredRule] = []
            placed = False
            for rule in self._rules:
                if rule in targets or rule == new_rule:
                    if not placed:
                        updated.append(new_rule)
                        placed = True
                    continue
                updated.append(rule)
            self._rules = updated
        return True

    def _row_to_rule(self, row: PolicyRow) -> StoredRule:
        """Convert a persisted row to a rule."""
        ptype, values = row[0], row[1:]

        if ptype == PERMISSION_TYPE and len(values) in (4, 5):
            effect = values[4] if len(values) == 5 else Effect.ALLOW.value
            try:
                return PermissionRule(
                    subject=values[0],
                    domain=values[1],
                    object=values[2],
                    action=values[3],
                    effect=Effect(effect.lower()),
                    source_row=tuple(row)
                )
            except ValueError as e:
                raise StoreError("Unknown permission effect", {"row": list(row)}) from e

        if ptype == GROUPING_TYPE and len(values) == 3:
            return GroupingRule(subject=values[0], role=values[1], domain=values[2])

        self.logger.error("Malformed policy row", row=list(row))
        raise StoreError("Malformed policy row", {"row": list(row)})

    def _rule_to_row(self, rule: StoredRule) -> PolicyRow:
        if isinstance(rule, PermissionRule):
            if rule.source_row is not None:
                return rule.source_row
            return (PERMISSION_TYPE,) + rule.as_tuple()
        return (GROUPING_TYPE,) + rule.as_tuple()

    def _record_reload(self, status: str):
        if self.metrics:
            self.metrics.record_reload(status)

    def _record_save(self, status: str):
        if self.metrics:
            self.metrics.record_save(status)
