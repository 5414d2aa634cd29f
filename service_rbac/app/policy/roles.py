"""
Role hierarchy resolution for RBAC Service.
"""

from collections import deque
from typing import Callable, Dict, List, Optional, Sequence

from shared.logging import get_logger
from .models import GroupingRule
from .store import RuleStore


class RoleHierarchyResolver:
    """Walks grouping rules to find who holds what within a domain.

    Grouping rules form a directed graph per domain (subject -> role), and
    a role may itself be the subject of another rule. The graph may
    contain cycles; traversal keeps a visited set and stops after
    ``max_hierarchy_level`` hops.
    """

    def __init__(self, store: RuleStore, max_hierarchy_level: int = 10):
        self.store = store
        self.max_hierarchy_level = max_hierarchy_level
        self.logger = get_logger("rbac.role_resolver")

    def roles_of(self, subject: str, domain: str,
                 grouping_rules: Optional[Sequence[GroupingRule]] = None) -> List[str]:
        """Every role ``subject`` holds in ``domain``, inherited roles included.

        ``grouping_rules`` resolves against a snapshot the caller already
        holds instead of the store's current one.
        """
        edges = self._edges(domain, lambda rule: (rule.subject, rule.role), grouping_rules)
        return self._walk(subject, edges)

    def subjects_of(self, role: str, domain: str) -> List[str]:
        """Every subject holding ``role`` in ``domain``, directly or through other roles."""
        edges = self._edges(domain, lambda rule: (rule.role, rule.subject))
        return self._walk(role, edges)

    def direct_roles_of(self, subject: str, domain: str) -> List[str]:
        """Roles assigned to ``subject`` in ``domain`` by its own grouping rules."""
        roles: List[str] = []
        for rule in self.store.grouping_rules_filtered_by_domain(domain):
            if rule.subject == subject and rule.role not in roles:
                roles.append(rule.role)
        return roles

    def _edges(self, domain: str,
               edge: Callable[[GroupingRule], Sequence[str]],
               grouping_rules: Optional[Sequence[GroupingRule]] = None) -> Dict[str, List[str]]:
        if grouping_rules is None:
            rules = self.store.grouping_rules_filtered_by_domain(domain)
        else:
            rules = [rule for rule in grouping_rules if rule.domain == domain]

        graph: Dict[str, List[str]] = {}
        for rule in rules:
            source, target = edge(rule)
            graph.setdefault(source, []).append(target)
        return graph

    def _walk(self, start: str, graph: Dict[str, List[str]]) -> List[str]:
        """Breadth-first traversal returning reached nodes in discovery order.

        ``start`` is only part of the result when a cycle leads back to it.
        """
        reached: List[str] = []
        visited = {start}
        queue = deque([(start, 0)])

        while queue:
            node, depth = queue.popleft()
            targets = graph.get(node, [])
            if depth >= self.max_hierarchy_level:
                if targets:
                    self.logger.warning("Role hierarchy depth limit reached",
                                        start=start, node=node, limit=self.max_hierarchy_level)
                continue
            for target in targets:
                if target == start and start not in reached:
                    reached.append(start)
                if target in visited:
                    continue
                visited.add(target)
                reached.append(target)
                queue.append((target, depth + 1))

        return reached
