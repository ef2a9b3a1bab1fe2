"""Tests for the JSON API."""

from __future__ import annotations

import pytest

from dealflow.web.server import WebServer, create_app


def _as(user_id: str) -> dict:
    return {"X-User-Id": user_id}


class TestWebServer:
    """Tests for WebServer class."""

    def test_server_creation(self):
        """Test WebServer can be created."""
        server = WebServer(host="127.0.0.1", port=5051)
        assert server.host == "127.0.0.1"
        assert server.port == 5051
        assert server.is_running is False

    def test_url_generation(self):
        """Test URL is generated correctly."""
        server = WebServer(port=5050)
        url = server.url
        assert ":5050" in url
        assert url.startswith("http://")


class TestFlaskApp:
    """Tests for Flask application routes."""

    @pytest.fixture
    def client(self, settings, repo, admin, va, other_va):
        """Create a test client."""
        app = create_app(settings, repository=repo)
        app.config["TESTING"] = True
        with app.test_client() as client:
            yield client

    @pytest.fixture
    def deal_id(self, client, deal_payload) -> int:
        response = client.post("/api/sourcing", json=deal_payload, headers=_as("va-1"))
        return response.get_json()["id"]

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "ok"

    def test_missing_actor(self, client):
        response = client.get("/api/sourcing")
        assert response.status_code == 401
        assert response.get_json()["error"] == "authentication_error"

    def test_unknown_actor(self, client):
        assert client.get("/api/sourcing", headers=_as("ghost")).status_code == 401

    def test_unknown_route_is_json(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.get_json()["error"] == "not_found"

    def test_auth_user(self, client):
        data = client.get("/api/auth/user", headers=_as("va-1")).get_json()
        assert data["id"] == "va-1"
        assert data["name"] == "Victor Assistant"
        assert data["total_sourcing"] == 0

    def test_create_sourcing(self, client, deal_payload):
        response = client.post("/api/sourcing", json=deal_payload, headers=_as("va-1"))
        assert response.status_code == 201

        data = response.get_json()
        assert data["status"] == "submitted"
        assert data["profit_margin"] == "50.0"
        assert data["submitted_by"] == "va-1"

    def test_create_sourcing_invalid(self, client):
        response = client.post("/api/sourcing", json={"asin": ""}, headers=_as("va-1"))
        assert response.status_code == 400
        data = response.get_json()
        assert data["error"] == "validation_error"
        assert "product_name" in data["details"]["fields"]

    def test_create_sourcing_price_too_large(self, client, deal_payload):
        deal_payload["sell_price"] = "1e30"
        response = client.post("/api/sourcing", json=deal_payload, headers=_as("va-1"))
        assert response.status_code == 400
        assert "sell_price" in response.get_json()["details"]["fields"]

    def test_body_must_be_object(self, client):
        response = client.post("/api/sourcing", json=["B000000001"], headers=_as("va-1"))
        assert response.status_code == 400

    def test_list_sourcing_scoped_to_va(self, client, deal_id):
        assert len(client.get("/api/sourcing", headers=_as("va-1")).get_json()) == 1
        assert client.get("/api/sourcing", headers=_as("va-2")).get_json() == []
        assert len(client.get("/api/sourcing", headers=_as("admin-1")).get_json()) == 1

    def test_get_sourcing(self, client, deal_id):
        assert client.get(f"/api/sourcing/{deal_id}", headers=_as("va-1")).status_code == 200
        assert client.get(f"/api/sourcing/{deal_id}", headers=_as("va-2")).status_code == 403
        assert client.get("/api/sourcing/9999", headers=_as("admin-1")).status_code == 404

    def test_bad_query_parameter(self, client):
        response = client.get("/api/sourcing?limit=many", headers=_as("admin-1"))
        assert response.status_code == 400

    def test_transition(self, client, deal_id):
        response = client.patch(
            f"/api/sourcing/{deal_id}/status",
            json={"status": "winner", "review_notes": "approved"},
            headers=_as("admin-1"),
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "winner"
        assert data["reviewed_by"] == "admin-1"
        assert data["review_notes"] == "approved"

        feed = client.get("/api/activities?limit=5", headers=_as("admin-1")).get_json()
        assert [e["action"] for e in feed] == ["deal_status_updated", "deal_submitted"]

    def test_va_transition_forbidden(self, client, deal_id):
        response = client.patch(
            f"/api/sourcing/{deal_id}/status", json={"status": "winner"}, headers=_as("va-1")
        )
        assert response.status_code == 403
        assert response.get_json()["error"] == "authorization_error"

    def test_transition_unknown_item(self, client):
        response = client.patch(
            "/api/sourcing/9999/status", json={"status": "winner"}, headers=_as("admin-1")
        )
        assert response.status_code == 404

    def test_dashboard(self, client, deal_id):
        kpis = client.get("/api/dashboard/kpis", headers=_as("va-1")).get_json()
        assert kpis["active_sourcing"] == 1
        assert kpis["available_budget"] == 156750.0

        pipeline = client.get("/api/dashboard/pipeline", headers=_as("va-1")).get_json()
        assert pipeline["submitted"] == 1
        assert pipeline["total"] == 1

    def test_va_performance(self, client, deal_id):
        response = client.get("/api/va/performance/va-1?weeks=2", headers=_as("va-1"))
        assert response.status_code == 200
        data = response.get_json()
        assert len(data["weekly_stats"]) == 2
        assert data["total_stats"]["total_deals"] == 1

        assert client.get("/api/va/performance/va-1", headers=_as("va-2")).status_code == 403
        assert client.get("/api/va/performance/va-1?weeks=0", headers=_as("admin-1")).status_code == 400
        response = client.get("/api/va/performance/va-1?weeks=200000", headers=_as("admin-1"))
        assert response.status_code == 400
        assert response.get_json()["error"] == "validation_error"

    def test_purchasing_flow(self, client, deal_id):
        client.patch(f"/api/sourcing/{deal_id}/status", json={"status": "winner"}, headers=_as("admin-1"))

        queue = client.get("/api/purchasing/queue", headers=_as("admin-1")).get_json()
        assert queue["count"] == 1

        response = client.post(
            "/api/purchasing",
            json={"sourcing_id": deal_id, "planned_quantity": 10, "cost_per_unit": 12.5, "planned_budget": 125},
            headers=_as("admin-1"),
        )
        assert response.status_code == 201
        plan = response.get_json()
        assert plan["expected_revenue"] == 250.0

        updated = client.patch(
            f"/api/purchasing/{plan['id']}", json={"status": "ordered"}, headers=_as("admin-1")
        ).get_json()
        assert updated["status"] == "ordered"

        plans = client.get("/api/purchasing", headers=_as("admin-1")).get_json()
        assert plans[0]["sourcing"]["asin"] == "B08N5WRWNW"
        assert client.get("/api/purchasing/queue", headers=_as("admin-1")).get_json()["count"] == 0

    def test_plan_for_non_winner_conflicts(self, client, deal_id):
        response = client.post(
            "/api/purchasing",
            json={"sourcing_id": deal_id, "planned_quantity": 1, "cost_per_unit": 1, "planned_budget": 1},
            headers=_as("admin-1"),
        )
        assert response.status_code == 409

    def test_listing_flow(self, client, deal_id):
        response = client.post("/api/listings", json={"sourcing_id": deal_id}, headers=_as("admin-1"))
        assert response.status_code == 201
        listing = response.get_json()
        assert listing["sku_code"].startswith("HYDROCO_12.50_")

        again = client.post("/api/listings", json={"sourcing_id": deal_id}, headers=_as("admin-1"))
        assert again.status_code == 409

        synced = client.patch(
            f"/api/listings/{listing['id']}/sync", json={"amazon_status": "live"}, headers=_as("admin-1")
        ).get_json()
        assert synced["amazon_sync_status"] == "live"

        payload = client.get(
            f"/api/listings/{listing['id']}/payload", headers=_as("admin-1")
        ).get_json()
        assert payload["productType"] == "HOME"

        listed = client.get("/api/listings?status=live", headers=_as("va-1")).get_json()
        assert [found["id"] for found in listed] == [listing["id"]]

    def test_sheets_test_mock(self, client):
        data = client.get("/api/integrations/google-sheets/test", headers=_as("va-1")).get_json()
        assert data["success"] is True
        assert "ASIN" in data["headers"]

    def test_import_rows(self, client):
        response = client.post(
            "/api/integrations/google-sheets/import",
            json={"rows": [{"ASIN": "B000000001", "Cost Price": "5", "Sale Price": "9"}, {"ASIN": "", "Cost Price": "1"}]},
            headers=_as("va-1"),
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data["imported_rows"] == 1
        assert data["errors"] == ["Row 3: ASIN is required"]

    def test_import_rows_must_be_objects(self, client):
        response = client.post(
            "/api/integrations/google-sheets/import", json={"rows": ["x"]}, headers=_as("va-1")
        )
        assert response.status_code == 400

    def test_import_from_mock_sheet(self, client):
        data = client.post("/api/integrations/google-sheets/import", headers=_as("va-1")).get_json()
        assert data["imported_rows"] == 6
