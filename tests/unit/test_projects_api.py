"""Tests for the admin project endpoints and error mapping"""

from __future__ import annotations

import inspect

import pytest

from mission_control.api.routes import client_portal, clients, projects


class TestCreateProject:
    def test_create_returns_id(self, client):
        response = client.post(
            "/api/projects",
            json={"name": "  Acme Portal ", "client_slug": " ACME ", "client_password": "pw"},
        )

        assert response.status_code == 201
        project_id = response.json()["id"]

        detail = client.get(f"/api/projects/{project_id}").json()
        assert detail["project"]["name"] == "Acme Portal"
        assert detail["project"]["client_slug"] == "acme"
        assert detail["project"]["status"] == "active"
        assert "client_password" not in detail["project"]

    def test_duplicate_slug_is_409_and_not_inserted(self, client, api_db):
        """Test that a second project with a used slug is rejected with no row inserted"""
        client.post("/api/projects", json={"name": "First", "client_slug": "acme"})

        response = client.post("/api/projects", json={"name": "Second", "client_slug": "acme"})

        assert response.status_code == 409
        assert response.json() == {
            "error": "That client slug is already taken. Choose a different one."
        }
        assert api_db.fetch_one("SELECT COUNT(*) AS n FROM projects")["n"] == 1

    def test_missing_name_is_400(self, client, api_db):
        response = client.post("/api/projects", json={"name": "   ", "client_slug": "acme"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid request"
        assert body["invalid_fields"] == ["name"]
        assert api_db.fetch_one("SELECT COUNT(*) AS n FROM projects")["n"] == 0

    def test_malformed_json_is_400(self, client):
        response = client.post(
            "/api/projects", content="{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400


class TestProjectDetail:
    def test_unknown_project_is_404(self, client):
        response = client.get("/api/projects/missing")
        assert response.status_code == 404
        assert response.json() == {"error": "Project not found"}

    def test_detail_includes_blockers_and_change_requests(self, client, project):
        client.post(
            "/api/blockers",
            json={"project_id": project.id, "title": "Need API keys", "waiting_on": "client"},
        )
        client.post(
            "/api/change-requests",
            json={"project_id": project.id, "title": "Dark mode", "hours_impact": 6},
        )

        detail = client.get(f"/api/projects/{project.id}").json()

        assert detail["budget_percent"] == 75
        assert [b["title"] for b in detail["blockers"]] == ["Need API keys"]
        assert detail["changeRequests"][0]["status"] == "pending"

    def test_list(self, client, project):
        listed = client.get("/api/projects").json()
        assert [p["id"] for p in listed] == [project.id]


class TestUpdateProject:
    def test_patch_budget_and_status(self, client, project):
        response = client.patch(
            "/api/projects",
            json={"id": project.id, "used_hours": 30, "status": "paused"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["used_hours"] == 30
        assert body["status"] == "paused"
        assert body["budget_hours"] == 60

    def test_unknown_status_is_400(self, client, project):
        response = client.patch("/api/projects", json={"id": project.id, "status": "on_fire"})
        assert response.status_code == 400
        assert response.json()["invalid_fields"] == ["status"]

    def test_missing_project_is_404(self, client):
        response = client.patch("/api/projects", json={"id": "missing", "name": "X"})
        assert response.status_code == 404

    def test_delete(self, client, project):
        assert client.delete(f"/api/projects/{project.id}").json() == {"success": True}
        assert client.get(f"/api/projects/{project.id}").status_code == 404


class TestSupportingEndpoints:
    def test_blocker_lifecycle(self, client, project):
        created = client.post(
            "/api/blockers",
            json={"project_id": project.id, "title": "Copy review", "waiting_on": "team"},
        ).json()

        resolved = client.patch("/api/blockers", json={"id": created["id"], "status": "resolved"})

        assert resolved.json()["status"] == "resolved"
        open_blockers = client.get(
            "/api/blockers", params={"project_id": project.id, "status": "open"}
        ).json()
        assert open_blockers == []

    def test_blocker_requires_waiting_on(self, client, project):
        response = client.post("/api/blockers", json={"project_id": project.id, "title": "X"})
        assert response.status_code == 400
        assert response.json()["invalid_fields"] == ["waiting_on"]

    def test_change_request_approval(self, client, project):
        created = client.post(
            "/api/change-requests",
            json={"project_id": project.id, "title": "Dark mode", "hours_impact": 6},
        ).json()

        approved = client.patch(
            "/api/change-requests",
            json={"id": created["id"], "status": "approved", "hours_impact": 8},
        )

        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"
        assert approved.json()["hours_impact"] == 8
        listed = client.get("/api/change-requests", params={"project_id": project.id}).json()
        assert [(cr["title"], cr["status"]) for cr in listed] == [("Dark mode", "approved")]

    def test_change_request_unknown_status_is_400(self, client, project):
        response = client.patch("/api/change-requests", json={"id": "x", "status": "maybe"})
        assert response.status_code == 400
        assert response.json()["invalid_fields"] == ["status"]

    def test_unknown_change_request_is_404(self, client):
        response = client.patch("/api/change-requests", json={"id": "missing", "status": "rejected"})
        assert response.status_code == 404
        assert response.json() == {"error": "Change request not found"}

    def test_module_for_unknown_project_is_404(self, client):
        response = client.post("/api/modules", json={"projectId": "missing", "name": "Auth"})
        assert response.status_code == 404
        assert response.json() == {"error": "Project not found"}

    def test_clients_never_return_password(self, client, project):
        created = client.post(
            "/api/clients",
            json={"project_id": project.id, "name": "Jane", "password": "hunter2"},
        )
        assert created.status_code == 201
        assert "password" not in created.json()

        listed = client.get("/api/clients", params={"project_id": project.id}).json()
        assert [c["name"] for c in listed] == ["Jane"]

        deleted = client.delete("/api/clients", params={"id": listed[0]["id"]})
        assert deleted.json() == {"success": True}

    def test_events_newest_first(self, client, project):
        for title in ("Deploy 1", "Deploy 2"):
            response = client.post(
                "/api/events",
                json={
                    "projectId": project.id,
                    "provider": "vercel",
                    "event_type": "deployment",
                    "severity": "success",
                    "title": title,
                    "metadata": {"url": "https://vercel.com/acme/deploy"},
                },
            )
            assert response.status_code == 201

        events = client.get("/api/events", params={"projectId": project.id}).json()["events"]

        assert [e["title"] for e in events] == ["Deploy 2", "Deploy 1"]
        assert events[0]["link"] == "https://vercel.com/acme/deploy"

    def test_events_require_project_id(self, client):
        response = client.get("/api/events")
        assert response.status_code == 400
        assert response.json()["invalid_fields"] == ["projectId"]

    def test_me(self, client):
        assert client.get("/api/me").json() == {"id": "dev-user", "email": "dev@localhost"}

    def test_health(self, client):
        assert client.get("/health").json()["llm"]["ready"] is True
        assert client.get("/health/db").json()["status"] == "healthy"


@pytest.mark.parametrize(
    "handler",
    [
        client_portal.client_login,
        projects.create_project,
        projects.update_project,
        clients.create_client,
    ],
)
def test_password_hashing_handlers_are_sync(handler):
    """Test that bcrypt work stays off the event loop (FastAPI threadpool)"""
    assert not inspect.iscoroutinefunction(handler)
