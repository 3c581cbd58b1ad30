# ============================================================================
# API Tests
# ============================================================================
import pytest


class TestHealthEndpoints:
    """Tests for health check endpoints"""

    @pytest.mark.asyncio
    async def test_root_endpoint(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    @pytest.mark.asyncio
    async def test_health_endpoint(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["entity_kinds"] == ["user", "zone"]

    @pytest.mark.asyncio
    async def test_no_test_endpoint(self, client):
        response = await client.get("/api/v1/test")
        assert response.status_code == 404


class TestModalEndpoints:
    """Tests for the create/edit/view modal"""

    @pytest.mark.asyncio
    async def test_create_and_submit(self, client):
        response = await client.post("/api/v1/admin/user/modal/create")
        assert response.status_code == 200
        assert response.json()["mode"] == "create"

        response = await client.post("/api/v1/admin/user/modal/submit", json={"form_data": {"name": "Chipo"}})
        assert response.status_code == 200
        assert response.json()["name"] == "Chipo"

        response = await client.get("/api/v1/admin/user/modal")
        assert response.json()["mode"] == "closed"

    @pytest.mark.asyncio
    async def test_submit_without_session(self, client):
        response = await client.post("/api/v1/admin/user/modal/submit", json={"form_data": {}})
        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_STATE"

    @pytest.mark.asyncio
    async def test_edit_by_rendered_id(self, client, sample_users):
        await client.post("/api/v1/admin/user/list", json={"items": sample_users})

        response = await client.post("/api/v1/admin/user/modal/edit", json={"entity_id": "2"})

        assert response.status_code == 200
        assert response.json()["entity"]["name"] == "Rudo Banda"

    @pytest.mark.asyncio
    async def test_edit_unknown_id(self, client):
        response = await client.post("/api/v1/admin/user/modal/edit", json={"entity_id": "42"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_kind(self, client):
        response = await client.post("/api/v1/admin/course/modal/create")
        assert response.status_code == 404
        assert response.json()["error_code"] == "UNKNOWN_ENTITY_KIND"


class TestToggleEndpoint:

    @pytest.mark.asyncio
    async def test_toggle(self, client, sample_users):
        await client.post("/api/v1/admin/user/list", json={"items": sample_users})

        response = await client.post("/api/v1/admin/user/1/toggle", json={"reason": "Graduated"})

        assert response.status_code == 200
        assert response.json() == {"entity_id": "1", "status": "inactive", "is_active": False}

    @pytest.mark.asyncio
    async def test_toggle_with_entity_body(self, client, gateway):
        response = await client.post(
            "/api/v1/admin/user/7/toggle",
            json={"reason": "Left school", "entity": {"name": "Nyasha", "is_active": True}}
        )

        assert response.status_code == 200
        assert response.json()["entity_id"] == "7"
        assert gateway.calls_to("set_status")[0][1] == "7"

    @pytest.mark.asyncio
    async def test_body_id_must_match_path(self, client, gateway):
        response = await client.post(
            "/api/v1/admin/user/1/toggle",
            json={"reason": "x", "entity": {"id": "2", "name": "Rudo", "is_active": True}}
        )

        assert response.status_code == 422
        assert response.json()["field_errors"] == {"entity_id": "mismatch"}
        assert gateway.calls_to("set_status") == []


class TestDeletionEndpoints:
    """Tests for the undoable delete flow"""

    @pytest.mark.asyncio
    async def test_schedule_list_and_cancel(self, client, gateway, sample_users):
        await client.post("/api/v1/admin/user/list", json={"items": sample_users})

        response = await client.post("/api/v1/admin/user/deletions", json={"entity_id": "1", "reason": "Duplicate"})
        assert response.status_code == 202
        deletion_id = response.json()["deletion_id"]
        assert response.json()["remaining"] == 30

        response = await client.get("/api/v1/admin/user/deletions")
        assert [p["deletion_id"] for p in response.json()] == [deletion_id]

        response = await client.delete(f"/api/v1/admin/user/deletions/{deletion_id}")
        assert response.json() == {"deletion_id": deletion_id, "cancelled": True}

        response = await client.delete(f"/api/v1/admin/user/deletions/{deletion_id}")
        assert response.json()["cancelled"] is False
        assert gateway.calls_to("delete") == []

    @pytest.mark.asyncio
    async def test_blank_reason_rejected(self, client, sample_users):
        await client.post("/api/v1/admin/user/list", json={"items": sample_users})

        response = await client.post("/api/v1/admin/user/deletions", json={"entity_id": "1", "reason": "  "})

        assert response.status_code == 422
        assert response.json()["field_errors"] == {"reason": "required"}

    @pytest.mark.asyncio
    async def test_preview(self, client, sample_users):
        await client.post("/api/v1/admin/user/list", json={"items": sample_users})

        response = await client.post("/api/v1/admin/user/deletions/preview", json={"entity_id": "3"})

        assert response.status_code == 200
        assert response.json() == {"entity_id": "3", "label": "Farai Ncube", "cascading_effects": []}


class TestBulkEndpoints:
    """Tests for selection and bulk actions"""

    @pytest.mark.asyncio
    async def test_bulk_on_selection(self, client, gateway, sample_users):
        await client.post("/api/v1/admin/user/list", json={"items": sample_users})
        response = await client.put("/api/v1/admin/user/selection", json={"ids": ["1", "2", "99"]})
        assert response.json() == {"ids": ["1", "2"], "dropped": ["99"]}

        response = await client.post("/api/v1/admin/user/bulk", json={"action": "deactivate", "reason": "Term ended"})

        assert response.status_code == 200
        assert response.json() == {
            "action": "deactivate",
            "completed": 2,
            "succeeded": 2,
            "failed": 0,
            "total": 2,
            "cancelled": False
        }
        assert len(gateway.calls_to("set_status")) == 2

    @pytest.mark.asyncio
    async def test_bulk_nothing_selected(self, client):
        response = await client.post("/api/v1/admin/user/bulk", json={"action": "delete", "reason": "x"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_cancel_when_idle(self, client):
        response = await client.post("/api/v1/admin/user/bulk/cancel")
        assert response.json() == {"cancelled": False}


class TestEventsWebSocket:
    """Tests for the lifecycle event stream"""

    def test_ping_and_commands(self, make_gateway):
        from fastapi.testclient import TestClient
        from app.main import app
        from app.services.lifecycle import AdminConsole

        console = AdminConsole()
        console.register(make_gateway("user"))
        app.state.console = console
        try:
            # No context manager: the lifespan would replace the console
            client = TestClient(app)
            with client.websocket_connect("/api/v1/admin/events?kind=user") as websocket:
                websocket.send_json({"command": "ping"})
                assert websocket.receive_json()["type"] == "pong"

                websocket.send_json({"command": "cancel_deletion", "kind": "user", "deletion_id": "missing"})
                reply = websocket.receive_json()
                assert reply["type"] == "cancel_deletion_result"
                assert reply["data"]["cancelled"] is False

                websocket.send_json({"command": "cancel_deletion", "kind": "course", "deletion_id": "x"})
                assert websocket.receive_json()["type"] == "error"
        finally:
            del app.state.console
