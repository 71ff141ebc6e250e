from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from storefront_service.app.config import Settings
from storefront_service.app.database import Database
from storefront_service.app.main import create_app
from storefront_service.app.stores.live import LiveStore


def test_service_info(client):
    body = client.get("/api").json()

    assert body["message"] == "API is running"
    assert body["version"] == "2.0.0"
    assert "orders" in body["features"]


def test_health_with_database(client):
    body = client.get("/api/health").json()

    assert body["status"] == "OK"
    assert body["database"] == "connected"
    assert "time" in body


def test_health_without_database(demo_client):
    body = demo_client.get("/api/health").json()

    assert body["status"] == "OK"
    assert body["database"] == "disconnected"
    assert "time" in body


def test_init_db_can_run_repeatedly(client):
    first = client.post("/api/init-db")
    second = client.post("/api/init-db")

    assert first.status_code == 200
    assert second.status_code == 200
    assert set(first.json()["tables"]) == {"messages", "order_items", "orders", "products", "users"}
    assert second.json()["message"] == "Database initialized successfully!"


def test_unknown_route_speaks_json(client):
    resp = client.get("/api/nowhere")

    assert resp.status_code == 404
    assert "message" in resp.json()


def test_validation_errors_name_the_field(client):
    resp = client.post("/api/orders", json={"items": [], "customer": {"name": "A"}})

    assert resp.status_code == 400
    assert resp.json()["message"].startswith("Invalid field")
    assert "total" in resp.json()["message"]


def test_messages(client, auth_headers):
    resp = client.post("/api/messages", json={"name": "A", "email": "a@b.com", "message": "Hello"})

    assert resp.status_code == 201
    assert resp.json()["message"] == "Message sent successfully"
    assert resp.json()["data"]["message"] == "Hello"

    assert client.get("/api/messages").status_code == 401
    listed = client.get("/api/messages", headers=auth_headers).json()
    assert [m["message"] for m in listed] == ["Hello"]


def test_message_needs_every_field(client):
    resp = client.post("/api/messages", json={"name": "A", "email": "a@b.com"})

    assert resp.status_code == 400


def test_demo_messages(demo_client, demo_headers):
    resp = demo_client.post("/api/messages", json={"name": "A", "email": "a@b.com", "message": "Hello"})

    assert resp.status_code == 201
    assert resp.json()["demo"] is True
    assert demo_client.get("/api/messages", headers=demo_headers).json() == []


def test_database_probe():
    assert Database("sqlite://").probe() is True
    assert Database("sqlite:////nonexistent-storefront-dir/x.db").probe() is False


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///shop.db")
    monkeypatch.setenv("DEMO_AUTH_ENABLED", "0")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.database_url == "sqlite:///shop.db"
    assert settings.demo_auth_enabled is False
    assert settings.cors_origins == ["http://a.test", "http://b.test"]
    assert settings.log_level == "DEBUG"
    assert settings.port == 5000


def test_database_errors_answer_in_json(client, auth_headers, monkeypatch):
    def broken(self):
        raise OperationalError("SELECT messages", {}, Exception("server closed the connection"))

    monkeypatch.setattr(LiveStore, "list_messages", broken)

    resp = client.get("/api/messages", headers=auth_headers)

    assert resp.status_code == 500
    assert resp.json() == {"message": "Database error"}


def test_unexpected_errors_answer_in_json(settings, auth_headers, monkeypatch):
    def broken(self):
        raise RuntimeError("boom")

    monkeypatch.setattr(LiveStore, "list_messages", broken)

    with TestClient(create_app(settings), raise_server_exceptions=False) as client:
        resp = client.get("/api/messages", headers=auth_headers)

    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json() == {"message": "Internal server error"}


def test_demo_auth_is_off_unless_asked_for(monkeypatch):
    monkeypatch.delenv("DEMO_AUTH_ENABLED", raising=False)

    assert Settings().demo_auth_enabled is False
    assert Settings.from_env().demo_auth_enabled is False

    monkeypatch.setenv("DEMO_AUTH_ENABLED", "1")
    assert Settings.from_env().demo_auth_enabled is True
