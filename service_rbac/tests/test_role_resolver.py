"""
Unit tests for role hierarchy resolution.
"""

import pytest

from service_rbac.app.persistence.csv_file import CSVPolicyAdapter
from service_rbac.app.policy.roles import RoleHierarchyResolver
from service_rbac.app.policy.store import RuleStore
from shared.test_helpers import write_policy_file


def build_resolver(tmp_path, groupings, max_hierarchy_level=10):
    path = write_policy_file(tmp_path / "policy.csv", groupings=groupings)
    store = RuleStore(CSVPolicyAdapter(str(path)))
    store.reload()
    return RoleHierarchyResolver(store, max_hierarchy_level)


class TestRoleHierarchyResolver:
    """Test cases for RoleHierarchyResolver."""

    def test_direct_roles(self, tmp_path):
        """A subject holds the roles assigned to it."""
        resolver = build_resolver(tmp_path, [
            ("alice", "owner", "teamX"),
            ("alice", "moderator", "teamX"),
        ])

        assert resolver.roles_of("alice", "teamX") == ["owner", "moderator"]

    def test_roles_are_transitive(self, tmp_path):
        """Roles held by a role are inherited."""
        resolver = build_resolver(tmp_path, [
            ("alice", "owner", "teamX"),
            ("owner", "moderator", "teamX"),
            ("moderator", "member", "teamX"),
        ])

        assert resolver.roles_of("alice", "teamX") == ["owner", "moderator", "member"]

    def test_roles_are_scoped_to_domain(self, tmp_path):
        """Edges in other domains are not followed."""
        resolver = build_resolver(tmp_path, [
            ("alice", "owner", "teamX"),
            ("owner", "moderator", "teamY"),
            ("alice", "moderator", "teamY"),
        ])

        assert resolver.roles_of("alice", "teamX") == ["owner"]
        assert resolver.roles_of("alice", "teamZ") == []

    def test_unassigned_subject_has_no_roles(self, tmp_path):
        """No assignments is an empty result, not an error."""
        resolver = build_resolver(tmp_path, [])

        assert resolver.roles_of("bob", "teamX") == []
        assert resolver.subjects_of("owner", "teamX") == []

    def test_cycles_terminate(self, tmp_path):
        """A role cycle is walked once."""
        resolver = build_resolver(tmp_path, [
            ("alice", "owner", "teamX"),
            ("owner", "moderator", "teamX"),
            ("moderator", "owner", "teamX"),
        ])

        assert resolver.roles_of("alice", "teamX") == ["owner", "moderator"]

    def test_cycle_back_to_start_includes_start(self, tmp_path):
        """A role reachable from itself lists itself."""
        resolver = build_resolver(tmp_path, [
            ("owner", "moderator", "teamX"),
            ("moderator", "owner", "teamX"),
        ])

        assert resolver.roles_of("owner", "teamX") == ["moderator", "owner"]

    def test_self_assignment_terminates(self, tmp_path):
        """A subject assigned to itself does not loop."""
        resolver = build_resolver(tmp_path, [("owner", "owner", "teamX")])

        assert resolver.roles_of("owner", "teamX") == ["owner"]

    def test_subjects_of_is_transitive(self, tmp_path):
        """Holders of a role include holders of roles inheriting it."""
        resolver = build_resolver(tmp_path, [
            ("alice", "owner", "teamX"),
            ("owner", "moderator", "teamX"),
            ("bob", "moderator", "teamX"),
        ])

        assert sorted(resolver.subjects_of("moderator", "teamX")) == ["alice", "bob", "owner"]
        assert resolver.subjects_of("owner", "teamX") == ["alice"]

    def test_direct_roles_of_ignores_inherited(self, tmp_path):
        """Only the subject's own rules are direct roles."""
        resolver = build_resolver(tmp_path, [
            ("alice", "owner", "teamX"),
            ("owner", "moderator", "teamX"),
        ])

        assert resolver.direct_roles_of("alice", "teamX") == ["owner"]

    @pytest.mark.parametrize("limit,expected", [
        (1, ["r1"]),
        (2, ["r1", "r2"]),
        (10, ["r1", "r2", "r3", "r4"]),
    ])
    def test_max_hierarchy_level(self, tmp_path, limit, expected):
        """Traversal stops after the configured number of hops."""
        resolver = build_resolver(tmp_path, [
            ("alice", "r1", "teamX"),
            ("r1", "r2", "teamX"),
            ("r2", "r3", "teamX"),
            ("r3", "r4", "teamX"),
        ], max_hierarchy_level=limit)

        assert resolver.roles_of("alice", "teamX") == expected
