"""
Tests for the HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from mcpflow.agents.orchestrator import Orchestrator
from mcpflow.agents.planner import Planner
from mcpflow.web.app import create_app


@pytest.fixture
def client(services):
    planner = Planner(default_path="example.txt", save_path="research_results.txt", numeric_default=10)
    app = create_app(Orchestrator(services.registry, planner=planner))
    return TestClient(app)


class TestPlanRoutes:
    """Test planning and execution over HTTP."""

    def test_create_and_get_plan(self, client):
        response = client.post("/api/plans/", json={"request": "search for tariffs and save results"})
        assert response.status_code == 200
        plan = response.json()
        assert plan["status"] == "planning"
        assert [s["tool"] for s in plan["steps"]] == ["web_search", "write_file"]
        assert plan["steps"][1]["args"]["content"] == "{{PREVIOUS_RESULT}}"

        fetched = client.get(f"/api/plans/{plan['id']}").json()
        assert fetched["id"] == plan["id"]
        assert [p["id"] for p in client.get("/api/plans/").json()] == [plan["id"]]

    def test_execute_plan(self, client, services):
        plan_id = client.post("/api/plans/", json={"request": "search for tariffs and save results"}).json()["id"]

        response = client.post(f"/api/plans/{plan_id}/execute")
        assert response.status_code == 202
        assert response.json()["plan_id"] == plan_id

        # background tasks finish before the test client returns
        plan = client.get(f"/api/plans/{plan_id}").json()
        assert plan["status"] == "completed"
        assert plan["progress"] == 100
        assert "research_results.txt" in services.files

    def test_create_and_execute(self, client):
        plan = client.post("/api/plans/", json={"request": "search for tariffs", "execute": True}).json()
        assert client.get(f"/api/plans/{plan['id']}").json()["status"] == "completed"

    def test_execute_twice_conflicts(self, client):
        plan_id = client.post("/api/plans/", json={"request": "search for tariffs"}).json()["id"]
        client.post(f"/api/plans/{plan_id}/execute")

        response = client.post(f"/api/plans/{plan_id}/execute")
        assert response.status_code == 409
        assert response.json()["error"] == "InvalidTransition"

    def test_unknown_plan(self, client):
        response = client.get("/api/plans/plan_missing")
        assert response.status_code == 404
        assert response.json() == {"error": "PlanNotFound", "message": "Plan plan_missing not found"}
        assert client.post("/api/plans/plan_missing/cancel").status_code == 404

    def test_cancel_before_execution(self, client):
        plan_id = client.post("/api/plans/", json={"request": "search for tariffs"}).json()["id"]
        assert client.post(f"/api/plans/{plan_id}/cancel").status_code == 200

        client.post(f"/api/plans/{plan_id}/execute")
        plan = client.get(f"/api/plans/{plan_id}").json()
        assert plan["status"] == "failed"
        assert plan["error"] == "Plan cancelled"

    def test_empty_request_is_rejected(self, client):
        assert client.post("/api/plans/", json={"request": ""}).status_code == 422


class TestServiceRoutes:
    """Test service listing and connection management."""

    def test_list_services(self, client):
        services = client.get("/api/services/").json()
        assert [s["id"] for s in services] == ["filesystem", "websearch"]
        assert services[0]["status"] == "connected"
        assert {t["name"] for t in services[0]["tools"]} == {"read_file", "write_file", "list_directory"}

    def test_disconnect_changes_planning(self, client):
        assert client.post("/api/services/filesystem/disconnect").json()["status"] == "disconnected"
        plan = client.post("/api/plans/", json={"request": "search for tariffs and save results"}).json()
        assert [s["tool"] for s in plan["steps"]] == ["web_search"]

        assert client.post("/api/services/filesystem/connect").json()["status"] == "connected"

    def test_unknown_service(self, client):
        assert client.post("/api/services/calendar/connect").status_code == 404

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
