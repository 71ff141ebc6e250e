import pytest
from fastapi.testclient import TestClient

from storefront_service.app.config import Settings
from storefront_service.app.main import create_app
from storefront_service.app.schemas import Identity
from storefront_service.app.security import issue_token
from storefront_service.app.stores.live import LiveStore

# A path SQLite can never open, so every probe reports the database as down.
UNREACHABLE_DATABASE_URL = "sqlite:////nonexistent-storefront-dir/storefront.db"


def make_settings(**overrides):
    values = {"database_url": "sqlite://", "jwt_secret": "test-secret", "seed_secret": "test-seed"}
    values.update(overrides)
    return Settings(**values)


def bearer(settings, **claims):
    identity = Identity(**{"id": 1, "email": "admin@example.com", "role": "admin", "name": "Admin", **claims})
    return {"Authorization": f"Bearer {issue_token(identity, settings)}"}


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def database(client):
    return client.app.state.database


@pytest.fixture
def store(database):
    with database.session() as db:
        yield LiveStore(db)


@pytest.fixture
def auth_headers(settings):
    return bearer(settings)


@pytest.fixture
def demo_settings():
    return make_settings(database_url=UNREACHABLE_DATABASE_URL, demo_auth_enabled=True)


@pytest.fixture
def demo_client(demo_settings):
    with TestClient(create_app(demo_settings)) as c:
        yield c


@pytest.fixture
def demo_headers(demo_settings):
    return bearer(demo_settings)


@pytest.fixture
def order_payload():
    def build(payment_method="card", email="a@b.com", items=None, total=30.00):
        return {
            "items": items if items is not None else [{"id": 1, "name": "Widget", "price": 10.00, "quantity": 3}],
            "customer": {"name": "A", "email": email, "address": "1 Rd"},
            "total": total,
            "paymentMethod": payment_method,
        }

    return build
