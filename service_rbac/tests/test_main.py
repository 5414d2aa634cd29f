"""
Unit tests for the RBAC HTTP service.
"""

import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

from service_rbac.app.main import RBACService, create_app
from service_rbac.app.persistence.csv_file import CSVPolicyAdapter
from shared.errors import StoreError
from shared.test_helpers import create_sample_policy, read_policy_lines


class TestRBACService:
    """Test cases for RBACService."""

    @pytest.fixture
    def policy_path(self, tmp_path):
        return create_sample_policy(tmp_path / "policy.csv")

    @pytest.fixture
    def service(self, policy_path):
        return RBACService(policy_path=str(policy_path))

    @pytest.fixture
    def client(self, service):
        return TestClient(service.app)

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "rbac"
        assert "enforce" in data["capabilities"]

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["dependencies"]["policy_file"] == "ok"

    def test_health_without_policy_file(self, tmp_path):
        client = TestClient(create_app(policy_path=str(tmp_path / "missing.csv")))

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["dependencies"]["policy_file"] == "error"

    def test_service_initialization(self, service, policy_path):
        assert service.service_name == "rbac"
        assert service.port == 8088
        assert service.config.policy_path == str(policy_path)
        assert service.config.role_whitelist == {"owner", "moderator"}

    def test_enforce_allowed(self, client):
        """Allowed requests return the deciding rule."""
        response = client.post("/enforce", json={
            "subject": "alice", "domain": "teamX", "object": "repo1", "action": "write"
        })

        assert response.status_code == 200
        assert response.json() == {"message": ["owner", "teamX", "repo1", "write", "allow"]}

    def test_enforce_forbidden(self, client):
        response = client.post("/enforce", json={
            "subject": "alice", "domain": "teamX", "object": "repo1", "action": "delete"
        })

        assert response.status_code == 403
        assert response.json() == {"message": "forbidden"}

    def test_enforce_malformed_body(self, client):
        response = client.post("/enforce", json={"subject": "alice"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_enforce_storage_failure(self, client):
        """Storage failures are 500s, not denials."""
        with patch.object(CSVPolicyAdapter, "load_rows", side_effect=StoreError("unreadable")):
            response = client.post("/enforce", json={
                "subject": "alice", "domain": "teamX", "object": "repo1", "action": "write"
            })

        assert response.status_code == 500
        assert response.json()["code"] == "ENGINE_ERROR"

    def test_list_domains_and_roles(self, client):
        assert client.get("/domain").json() == {"domains": ["teamX", "teamY"]}
        assert client.get("/roles").json() == {"roles": ["moderator", "owner"]}

    def test_list_policies_and_groups(self, client):
        policies = client.get("/policies").json()["policies"]
        groups = client.get("/groups").json()["groups"]

        assert policies[0] == ["owner", "teamX", "repo1", "write", "allow"]
        assert groups == [["alice", "owner", "teamX"], ["bob", "moderator", "teamY"]]

    def test_list_members(self, client):
        response = client.get("/members/teamX")

        assert response.status_code == 200
        assert response.json() == {"members": [["alice", "owner", "teamX"]]}

    def test_add_member(self, client, policy_path):
        response = client.post("/members/teamX", json={"subject": "carol", "role": "moderator"})

        assert response.status_code == 200
        assert response.json() == {"message": "role added"}
        assert read_policy_lines(policy_path)[-1] == "g,carol,moderator,teamX"

    def test_add_existing_member(self, client):
        response = client.post("/members/teamX", json={"subject": "alice", "role": "owner"})

        assert response.status_code == 400
        assert response.json()["message"] == "failed to add role"

    def test_add_member_role_not_allowed(self, client, policy_path):
        """Roles outside the whitelist are rejected before any change."""
        before = read_policy_lines(policy_path)

        response = client.post("/members/teamX", json={"subject": "carol", "role": "admin"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert read_policy_lines(policy_path) == before

    def test_replace_member(self, client):
        client.post("/members/teamX", json={"subject": "carol", "role": "moderator"})

        response = client.put("/members/teamX", json={"subject": "carol", "role": "owner"})

        assert response.status_code == 200
        assert response.json() == {"message": "role updated"}
        members = client.get("/members/teamX").json()["members"]
        assert ["carol", "owner", "teamX"] in members
        assert ["carol", "moderator", "teamX"] not in members

    def test_replace_unknown_member(self, client):
        response = client.put("/members/teamX", json={"subject": "bob", "role": "moderator"})

        assert response.status_code == 400
        assert response.json()["code"] == "NOT_FOUND"
        assert response.json()["message"] == "user does not exist"

    def test_replace_member_role_not_allowed(self, client):
        response = client.put("/members/teamX", json={"subject": "alice", "role": "root"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_remove_member(self, client):
        response = client.request("DELETE", "/members/teamX", json={"subject": "alice"})

        assert response.status_code == 200
        assert response.json() == {"message": "role deleted"}
        assert client.get("/members/teamX").json() == {"members": []}

    def test_remove_unknown_member(self, client):
        response = client.request("DELETE", "/members/teamX", json={"subject": "carol"})

        assert response.status_code == 400
        assert response.json()["code"] == "NOT_FOUND"

    def test_save_failure_is_reported(self, client):
        with patch.object(CSVPolicyAdapter, "save_rows", side_effect=StoreError("disk full")):
            response = client.post("/members/teamX", json={"subject": "carol", "role": "owner"})

        assert response.status_code == 500
        assert response.json()["code"] == "PERSISTENCE_AFTER_MUTATION"

    def test_metrics_endpoint(self, client):
        client.post("/enforce", json={
            "subject": "alice", "domain": "teamX", "object": "repo1", "action": "write"
        })

        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'enforce_decisions_total{decision="allow"} 1.0' in response.text
