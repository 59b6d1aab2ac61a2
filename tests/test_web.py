"""Tests for the HTTP API."""

import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from weinkeller.db.engine import Database
from weinkeller.web.app import create_app


@pytest.fixture
def temp_db_path():
    """Create a temporary database file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
def client(temp_db_path, monkeypatch):
    """Create a test client serving a fresh database."""
    monkeypatch.setenv("FRONTEND_DIR", str(temp_db_path.parent / "no-frontend"))
    app = create_app(Database(temp_db_path))
    with TestClient(app) as client:
        yield client


def _create_wine(client: TestClient, **fields) -> dict:
    response = client.post("/api/add_or_update_wine_data", json={"name": "Barolo", **fields})
    assert response.status_code == 201
    return response.json()


class TestHealth:
    """Tests for the health endpoint and app wiring."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert "timestamp" in body

    def test_docs_served(self, client: TestClient) -> None:
        assert client.get("/api-docs").status_code == 200

    def test_database_closed_on_shutdown(self, temp_db_path: Path) -> None:
        database = Database(temp_db_path)
        with TestClient(create_app(database)):
            assert database.is_open
        assert not database.is_open

    def test_frontend_served_when_present(self, temp_db_path: Path, monkeypatch) -> None:
        frontend = temp_db_path.parent / "frontend"
        frontend.mkdir()
        (frontend / "index.html").write_text("<html>Weinkeller</html>")
        monkeypatch.setenv("FRONTEND_DIR", str(frontend))

        with TestClient(create_app(Database(temp_db_path))) as client:
            assert "Weinkeller" in client.get("/").text
            assert client.get("/api/health").status_code == 200


class TestInventoryRoutes:
    """Tests for stock and ledger routes."""

    def test_empty_inventory(self, client: TestClient) -> None:
        response = client.get("/api/get_inventory")
        assert response.status_code == 200
        assert response.json() == []

    def test_buy_buy_drink(self, client: TestClient) -> None:
        wine = _create_wine(client)

        for qty in (6, 3):
            response = client.post(
                "/api/add_to_inventory", json={"wine_id": wine["id"], "quantity": qty}
            )
            assert response.status_code == 201
            assert response.json()["event_type"] == "buy"

        response = client.post("/api/consume_wine", json={"wine_id": wine["id"], "quantity": 4})
        assert response.status_code == 201
        assert response.json()["event_type"] == "drink"

        inventory = client.get("/api/get_inventory").json()
        assert len(inventory) == 1
        assert inventory[0]["wine_name"] == "Barolo"
        assert inventory[0]["inventory"] == 5

        response = client.post("/api/consume_wine", json={"wine_id": wine["id"], "quantity": 6})
        assert response.status_code == 400
        assert "Insufficient inventory" in response.json()["error"]
        assert client.get("/api/get_inventory").json()[0]["inventory"] == 5

    def test_acquisition_channel(self, client: TestClient) -> None:
        wine = _create_wine(client)
        response = client.post(
            "/api/add_to_inventory",
            json={"wine_id": wine["id"], "quantity": 1, "event_type": "gifted"},
        )
        assert response.status_code == 201
        assert response.json()["event_type"] == "buy"
        assert response.json()["acquisition_type"] == "gifted"

    def test_drink_via_add_rejected(self, client: TestClient) -> None:
        wine = _create_wine(client)
        response = client.post(
            "/api/add_to_inventory",
            json={"wine_id": wine["id"], "quantity": 1, "event_type": "drink"},
        )
        assert response.status_code == 400

    def test_unknown_wine_is_404(self, client: TestClient) -> None:
        response = client.post("/api/add_to_inventory", json={"wine_id": 999, "quantity": 1})
        assert response.status_code == 404
        assert response.json() == {"error": "Wine with ID 999 not found"}

    def test_missing_quantity_is_400(self, client: TestClient) -> None:
        response = client.post("/api/consume_wine", json={"wine_id": 1})
        assert response.status_code == 400
        assert "quantity" in response.json()["error"]

    def test_zero_quantity_is_400(self, client: TestClient) -> None:
        wine = _create_wine(client)
        response = client.post("/api/add_to_inventory", json={"wine_id": wine["id"], "quantity": 0})
        assert response.status_code == 400

    def test_history_and_wine_events(self, client: TestClient) -> None:
        wine = _create_wine(client)
        client.post(
            "/api/add_to_inventory",
            json={"wine_id": wine["id"], "quantity": 2, "event_date": "2024-01-01T10:00:00"},
        )
        client.post(
            "/api/consume_wine",
            json={"wine_id": wine["id"], "quantity": 1, "event_date": "2024-02-01T10:00:00"},
        )

        history = client.get("/api/inventory_history").json()
        assert [h["event_type"] for h in history] == ["drink", "buy"]
        assert history[0]["wine_name"] == "Barolo"

        events = client.get(f"/api/wines/{wine['id']}/events").json()
        assert len(events) == 2
        assert client.get("/api/wines/999/events").status_code == 404


class TestCatalogRoutes:
    """Tests for wine, producer and tag routes."""

    def test_seeded_tags(self, client: TestClient) -> None:
        names = [t["name"] for t in client.get("/api/occasion_tags").json()]
        assert names == ["Connoisseur", "Special", "Summer", "Winter"]

    def test_create_tag(self, client: TestClient) -> None:
        response = client.post("/api/grape_tags", json={"name": "Nebbiolo"})
        assert response.status_code == 201
        assert response.json()["name"] == "Nebbiolo"

        duplicate = client.post("/api/grape_tags", json={"name": "Nebbiolo"})
        assert duplicate.status_code == 400
        assert duplicate.json() == {"error": "Grape tag 'Nebbiolo' already exists"}

        blank = client.post("/api/region_tags", json={"name": " "})
        assert blank.status_code == 400

    def test_wine_crud_with_tags(self, client: TestClient) -> None:
        grape = client.post("/api/grape_tags", json={"name": "Nebbiolo"}).json()
        producer = client.post(
            "/api/add_or_update_producer_data", json={"name": "Vietti"}
        ).json()

        wine = _create_wine(
            client, year=2016, producer_id=producer["id"], grape_tag_ids=[grape["id"]]
        )
        assert wine["producer_name"] == "Vietti"
        assert wine["grape_tags"] == [grape]

        fetched = client.get(f"/api/get_wine_data/{wine['id']}").json()
        assert fetched["year"] == 2016

        tagged = client.get(f"/api/grape_tags/{grape['id']}/wines").json()
        assert [w["id"] for w in tagged] == [wine["id"]]

        response = client.delete(f"/api/wines/{wine['id']}/tags/grape")
        assert response.status_code == 204
        assert client.get(f"/api/get_wine_data/{wine['id']}").json()["grape_tags"] == []

    def test_wine_validation(self, client: TestClient) -> None:
        response = client.post("/api/add_or_update_wine_data", json={"name": ""})
        assert response.status_code == 400
        response = client.post("/api/add_or_update_wine_data", json={"name": "X", "year": 1500})
        assert response.status_code == 400

    def test_wine_not_found(self, client: TestClient) -> None:
        assert client.get("/api/get_wine_data/42").status_code == 404

    def test_producer_tag_kind_on_wine_rejected(self, client: TestClient) -> None:
        wine = _create_wine(client)
        response = client.put(f"/api/wines/{wine['id']}/tags/country", json={"tag_ids": []})
        assert response.status_code == 400

    def test_producer_detail(self, client: TestClient) -> None:
        country = client.post("/api/country_tags", json={"name": "Italy"}).json()
        producer = client.post(
            "/api/add_or_update_producer_data",
            json={"name": "Vietti", "country_tag_id": country["id"]},
        ).json()
        _create_wine(client, producer_id=producer["id"])

        detail = client.get(f"/api/get_producer_data/{producer['id']}").json()

        assert detail["country_tag"] == country
        assert [w["name"] for w in detail["wines"]] == ["Barolo"]
        assert len(client.get("/api/get_producer_data").json()) == 1
        assert client.get("/api/get_producer_data/99").status_code == 404


class TestAssessmentRoutes:
    """Tests for assessment routes."""

    def test_lifecycle(self, client: TestClient) -> None:
        wine = _create_wine(client)

        response = client.post(
            "/api/assessments", json={"wine_id": wine["id"], "nose_intensity": "medium"}
        )
        assert response.status_code == 201
        assessment = response.json()
        assert assessment["wine_name"] == "Barolo"

        response = client.put(
            f"/api/assessments/{assessment['id']}",
            json={"wine_id": wine["id"], "nose_intensity": "pronounced"},
        )
        assert response.json()["nose_intensity"] == "pronounced"

        assert len(client.get(f"/api/wines/{wine['id']}/assessments").json()) == 1
        assert len(client.get("/api/assessments").json()) == 1

        assert client.delete(f"/api/assessments/{assessment['id']}").status_code == 200
        assert client.get(f"/api/assessments/{assessment['id']}").status_code == 404

    def test_unknown_wine(self, client: TestClient) -> None:
        response = client.post("/api/assessments", json={"wine_id": 5})
        assert response.status_code == 404


class TestExportRoutes:
    """Tests for export/import routes."""

    def test_export_download(self, client: TestClient) -> None:
        wine = _create_wine(client)
        client.post("/api/add_to_inventory", json={"wine_id": wine["id"], "quantity": 2})

        response = client.get("/api/export/all/json")

        assert response.status_code == 200
        assert "wine_inventory_export.json" in response.headers["content-disposition"]
        assert response.text.startswith('{\n  "wines"')
        assert response.json()["inventory"][0]["inventory"] == 2

    def test_import(self, client: TestClient) -> None:
        document = {
            "tags": {"grape_tags": [{"id": 9, "name": "Syrah"}]},
            "producers": [{"description": "nameless"}],
            "wines": [{"name": "Hermitage", "grape_tags": [{"id": 9, "name": "Syrah"}]}],
            "inventory": [{"wine_id": 1, "inventory": 6}],
        }

        response = client.post("/api/import/json", json=document)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["created"] == {"wines": 1, "producers": 0, "tags": 1, "inventory": 1}
        assert len(body["errors"]) == 1

        stock = client.get("/api/get_inventory").json()
        assert stock[0]["inventory"] == 6
        assert stock[0]["grape_tags"][0]["name"] == "Syrah"

    def test_import_rejects_non_object(self, client: TestClient) -> None:
        response = client.post("/api/import/json", json=[1, 2])
        assert response.status_code == 400
        assert response.json()["success"] is False
