"""Tests for study template endpoints."""

from fastapi.testclient import TestClient


class TestListTemplates:
    """Tests for GET /api/v1/templates."""

    def test_list_all(self, client: TestClient):
        response = client.get("/api/v1/templates")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["categories"] == ["information-architecture", "survey", "usability-testing"]

    def test_summary_shape(self, client: TestClient):
        data = client.get("/api/v1/templates", params={"category": "survey"}).json()

        assert data["total"] == 1
        summary = data["templates"][0]
        assert summary["id"] == "customer-satisfaction"
        assert summary["blockCount"] == 5
        assert summary["variableCount"] == 1
        assert summary["metadata"]["complexity"] == "simple"

    def test_search(self, client: TestClient):
        data = client.get("/api/v1/templates", params={"q": "CARD"}).json()

        assert [t["id"] for t in data["templates"]] == ["navigation-card-sort"]

    def test_no_matches(self, client: TestClient):
        data = client.get("/api/v1/templates", params={"category": "diary-study"}).json()

        assert data["templates"] == []
        assert data["total"] == 0


class TestGetTemplate:
    """Tests for GET /api/v1/templates/{template_id}."""

    def test_get_template(self, client: TestClient):
        response = client.get("/api/v1/templates/usability-new-product")

        assert response.status_code == 200
        data = response.json()
        assert data["variables"][0]["defaultValue"] == "your product"
        assert data["blocks"][2]["type"] == "live_website_test"
        assert data["blocks"][2]["settings"]["websiteUrl"] == "[WEBSITE]"

    def test_not_found(self, client: TestClient):
        response = client.get("/api/v1/templates/nonexistent")

        assert response.status_code == 404
        assert response.json()["detail"]["error_code"] == "TEMPLATE_NOT_FOUND"


class TestInstantiate:
    """Tests for POST /api/v1/templates/{template_id}/instantiate."""

    def test_instantiate_with_bindings(self, client: TestClient):
        response = client.post(
            "/api/v1/templates/customer-satisfaction/instantiate",
            json={"bindings": {"companyName": "Globex"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["template_id"] == "customer-satisfaction"
        blocks = data["blocks"]
        assert blocks[0]["settings"]["title"] == "Welcome to the Globex survey"
        assert blocks[2]["settings"]["question"] == "Would you recommend Globex to a friend?"
        assert [b["order"] for b in blocks] == [0, 1, 2, 3, 4]
        assert blocks[0]["templateId"] == "customer-satisfaction"
        assert len({b["id"] for b in blocks}) == 5

    def test_optional_variable_falls_back_to_default(self, client: TestClient):
        response = client.post(
            "/api/v1/templates/navigation-card-sort/instantiate",
            json={"bindings": {}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["blocks"][0]["settings"]["title"] == "Help us organize our website"
        assert data["estimated_duration"] == 10

    def test_missing_required_variable(self, client: TestClient):
        response = client.post(
            "/api/v1/templates/customer-satisfaction/instantiate",
            json={"bindings": {"companyName": "   "}},
        )

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error_code"] == "MISSING_REQUIRED_VARIABLE"
        assert detail["details"] == {"key": "companyName", "template_id": "customer-satisfaction"}

    def test_instantiate_unknown_template(self, client: TestClient):
        response = client.post("/api/v1/templates/nonexistent/instantiate", json={})

        assert response.status_code == 404

    def test_malformed_bindings(self, client: TestClient):
        response = client.post(
            "/api/v1/templates/customer-satisfaction/instantiate",
            json={"bindings": ["companyName"]},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["error_code"] == "VALIDATION_ERROR"
