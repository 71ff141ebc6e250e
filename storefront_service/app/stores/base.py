from abc import ABC, abstractmethod
from typing import List, Tuple

from ..checkout import validate_checkout, validate_status
from ..schemas import (
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
    UserOut,
)


class StorefrontStore(ABC):
    """
    Everything the API needs from persistence.

    LiveStore talks to the database; DemoStore answers from memory when the
    database is unreachable. One of them is picked per request after probing.
    """

    is_demo = False

    # --- Catalog ---
    @abstractmethod
    def list_products(self) -> List[ProductOut]: ...

    @abstractmethod
    def list_products_by_category(self, category: str) -> List[ProductOut]: ...

    @abstractmethod
    def get_product(self, product_id: int) -> ProductOut: ...

    @abstractmethod
    def create_product(self, data: ProductCreate) -> ProductOut: ...

    @abstractmethod
    def update_product(self, product_id: int, data: ProductUpdate) -> ProductOut: ...

    @abstractmethod
    def delete_product(self, product_id: int) -> None: ...

    # --- Orders ---
    def place_order(self, order: OrderCreate) -> OrderOut:
        """Validates the checkout, then records it (or simulates it in demo mode)."""
        validate_checkout(order)
        return self._place_order(order)

    @abstractmethod
    def _place_order(self, order: OrderCreate) -> OrderOut: ...

    @abstractmethod
    def list_orders(self) -> List[OrderOut]: ...

    def update_order_status(self, order_id: int, status: str) -> OrderOut:
        validate_status(status)
        return self._update_order_status(order_id, status)

    @abstractmethod
    def _update_order_status(self, order_id: int, status: str) -> OrderOut: ...

    # --- Analytics ---
    @abstractmethod
    def get_dashboard(self) -> Dashboard: ...

    # --- Messages ---
    @abstractmethod
    def create_message(self, data: MessageCreate) -> MessageOut: ...

    @abstractmethod
    def list_messages(self) -> List[MessageOut]: ...

    # --- Users ---
    @abstractmethod
    def register_user(self, data: RegisterRequest) -> UserOut: ...

    @abstractmethod
    def authenticate(self, data: LoginRequest) -> UserOut: ...

    @abstractmethod
    def get_user(self, identity: Identity) -> UserOut: ...

    @abstractmethod
    def seed_admin(self, data: SeedAdminRequest) -> Tuple[UserOut, bool]:
        """Returns the admin account and whether it was created by this call."""
