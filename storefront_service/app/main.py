# --- Imports ---
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings, configure_logging
from .database import Database
from .dependencies import get_database, get_settings, get_store, require_user, validated_checkout
from .errors import Forbidden, PersistenceError, register_error_handlers
from .fallback import CATEGORIES
from .schemas import (
    Dashboard,
    Identity,
    LoginRequest,
    MessageCreate,
    MessageOut,
    OrderCreate,
    OrderOut,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    RegisterRequest,
    SeedAdminRequest,
    StatusUpdate,
    UserOut,
)
from .security import issue_token
from .stores.base import StorefrontStore

logger = logging.getLogger(__name__)

API_VERSION = "2.0.0"

router = APIRouter(prefix="/api")


def _message(store: StorefrontStore, text: str) -> str:
    return f"{text} (demo mode)" if store.is_demo else text


def _reply(store: StorefrontStore, text: str, **payload) -> dict:
    """Write responses: a message plus the entity, flagged when nothing was stored."""
    body = {"message": _message(store, text), **payload}
    if store.is_demo:
        body["demo"] = True
    return body


def _token_for(user: UserOut, settings: Settings) -> str:
    identity = Identity(id=user.id, email=user.email, role=user.role, name=user.name)
    return issue_token(identity, settings)


# --- Auth ---
@router.post("/auth/register", status_code=201)
def register(body: RegisterRequest, store: StorefrontStore = Depends(get_store), settings: Settings = Depends(get_settings)):
    """Registers an admin account and returns a bearer token for it."""
    user = store.register_user(body)
    return _reply(store, "Admin registered successfully", token=_token_for(user, settings), user=user)


@router.post("/auth/login")
def login(body: LoginRequest, store: StorefrontStore = Depends(get_store), settings: Settings = Depends(get_settings)):
    user = store.authenticate(body)
    return _reply(store, "Login successful", token=_token_for(user, settings), user=user)


@router.get("/auth/me")
def me(identity: Identity = Depends(require_user), store: StorefrontStore = Depends(get_store)):
    """Returns the account behind the bearer token."""
    return {"user": store.get_user(identity)}


@router.post("/auth/seed-admin")
def seed_admin(
    response: Response,
    body: Optional[SeedAdminRequest] = None,
    x_seed_secret: Optional[str] = Header(None),
    store: StorefrontStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """
    Creates the first admin account.
    - Requires the X-Seed-Secret header to match SEED_SECRET.
    - Does nothing if an admin already exists.
    """
    if x_seed_secret != settings.seed_secret:
        raise Forbidden("Invalid seed secret")

    body = body or SeedAdminRequest()
    user, created = store.seed_admin(body)
    if not created:
        return {"message": "Admin user already exists", "admin": {"email": user.email}}

    response.status_code = 201
    return {"message": "Admin user created successfully!", "token": _token_for(user, settings), "user": user}


# --- Products ---
@router.get("/products", response_model=List[ProductOut])
def list_products(store: StorefrontStore = Depends(get_store)):
    """Lists products, newest first; serves the built-in catalog when there are none."""
    return store.list_products()


@router.get("/products/category/{category}", response_model=List[ProductOut])
def list_products_by_category(category: str, store: StorefrontStore = Depends(get_store)):
    return store.list_products_by_category(category)


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: int, store: StorefrontStore = Depends(get_store)):
    return store.get_product(product_id)


@router.post("/products", status_code=201)
def create_product(body: ProductCreate, user: Identity = Depends(require_user), store: StorefrontStore = Depends(get_store)):
    product = store.create_product(body)
    return _reply(store, "Product created successfully", product=product)


@router.put("/products/{product_id}")
def update_product(
    product_id: int,
    body: ProductUpdate,
    user: Identity = Depends(require_user),
    store: StorefrontStore = Depends(get_store),
):
    """Updates the given fields of a product; fails with 503 in demo mode."""
    product = store.update_product(product_id, body)
    return {"message": "Product updated successfully", "product": product}


@router.delete("/products/{product_id}")
def delete_product(product_id: int, user: Identity = Depends(require_user), store: StorefrontStore = Depends(get_store)):
    store.delete_product(product_id)
    return {"message": "Product deleted successfully"}


@router.get("/categories")
def list_categories():
    return CATEGORIES


# --- Orders ---
@router.post("/orders", status_code=201)
def place_order(
    order: OrderCreate = Depends(validated_checkout),
    store: StorefrontStore = Depends(get_store),
):
    """
    Checkout: stores the order and its line items in one transaction.
    - Cash on delivery ("cod") leaves the payment pending; other methods complete it.
    - In demo mode the order is echoed back with random ids and not stored.
    """
    placed = store.place_order(order)
    return _reply(store, "Order placed successfully", order=placed)


@router.get("/orders", response_model=List[OrderOut])
def list_orders(user: Identity = Depends(require_user), store: StorefrontStore = Depends(get_store)):
    """Lists orders with their items, newest first."""
    return store.list_orders()


@router.patch("/orders/{order_id}/status")
def update_order_status(
    order_id: int,
    body: StatusUpdate,
    user: Identity = Depends(require_user),
    store: StorefrontStore = Depends(get_store),
):
    order = store.update_order_status(order_id, body.status)
    return {"message": "Order status updated", "order": order}


# --- Analytics ---
@router.get("/analytics", response_model=Dashboard)
def analytics(user: Identity = Depends(require_user), store: StorefrontStore = Depends(get_store)):
    """Dashboard figures; never fails, an unreadable database yields zeros."""
    return store.get_dashboard()


# --- Messages ---
@router.post("/messages", status_code=201)
def create_message(body: MessageCreate, store: StorefrontStore = Depends(get_store)):
    """Saves a contact form submission."""
    message = store.create_message(body)
    return _reply(store, "Message sent successfully", data=message)


@router.get("/messages", response_model=List[MessageOut])
def list_messages(user: Identity = Depends(require_user), store: StorefrontStore = Depends(get_store)):
    return store.list_messages()


# --- Service ---
@router.get("")
def root():
    """Service info."""
    return {
        "message": "API is running",
        "version": API_VERSION,
        "features": ["auth", "products", "orders", "analytics", "messages"],
    }


@router.get("/health")
def health(database: Database = Depends(get_database)):
    """Health check endpoint; also reports whether the database answers."""
    state = "connected" if database.probe() else "disconnected"
    return {"status": "OK", "database": state, "time": datetime.now(timezone.utc).isoformat()}


@router.post("/init-db")
def init_db(database: Database = Depends(get_database)):
    """Creates any missing tables and indexes. Safe to call repeatedly."""
    try:
        tables = database.create_all()
    except SQLAlchemyError as e:
        logger.error("Error initializing database: %s", e)
        raise PersistenceError(f"Failed to initialize database: {e}")
    return {"message": "Database initialized successfully!", "tables": tables}


# --- App Factory ---
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    database = Database(
        settings.database_url,
        connect_timeout=settings.db_connect_timeout,
        statement_timeout_ms=settings.db_statement_timeout_ms,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create database tables on startup if the database is reachable.
        if database.probe():
            try:
                database.create_all()
                logger.info("Database tables initialized")
            except SQLAlchemyError as e:
                logger.error("Database initialization error: %s", e)
        else:
            logger.warning("Database not available - running in demo mode")
        if settings.demo_auth_enabled:
            logger.warning("DEMO_AUTH_ENABLED is on: any credentials get an admin token while the database is down")
        yield
        database.dispose()

    app = FastAPI(title="Storefront API", version=API_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(router)
    return app


def run():
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    import uvicorn

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
