import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials

from .checkout import validate_checkout
from .config import Settings
from .database import Database
from .schemas import Identity, OrderCreate
from .security import bearer_scheme, verify_token
from .stores.demo import DemoStore
from .stores.live import LiveStore

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_store(database: Database = Depends(get_database), settings: Settings = Depends(get_settings)):
    """
    Probes the database once for this request and yields the matching store.

    A database that comes back mid-request is only picked up by the next request.
    """
    if not database.probe():
        logger.info("Database unavailable, serving request in demo mode")
        yield DemoStore(demo_auth_enabled=settings.demo_auth_enabled)
        return

    with database.session() as db:
        yield LiveStore(db)


def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Identity:
    """Guards protected routes: 401 without a bearer token, 403 for a bad one."""
    token = credentials.credentials if credentials else None
    return verify_token(token, settings)


def validated_checkout(body: OrderCreate) -> OrderCreate:
    """Rejects a bad cart or customer before the store dependency probes the database."""
    validate_checkout(body)
    return body
