import logging
import random
from datetime import datetime, timezone

from ..checkout import UNKNOWN_CATEGORY, line_subtotal, payment_method_of, payment_status_for
from ..errors import NotFound, Unavailable
from ..fallback import DEFAULT_PRODUCTS, PLACEHOLDER_IMAGE, demo_dashboard, find_default_product, sample_orders
from ..schemas import Dashboard, MessageOut, OrderItemOut, OrderOut, ProductOut, UserOut
from .base import StorefrontStore

logger = logging.getLogger(__name__)

DEMO_ADMIN = {"id": 1, "email": "demo@admin.com", "name": "Demo Admin", "role": "admin"}


def _random_id():
    return random.randint(1000, 10999)


class DemoStore(StorefrontStore):
    """
    In-memory stand-in used while the database is unreachable.

    Reads serve built-in data. Creates echo a synthesized record that is never
    stored. Changes to existing records raise Unavailable, since there is
    nothing to change.
    """

    is_demo = True

    def __init__(self, demo_auth_enabled: bool = False):
        self.demo_auth_enabled = demo_auth_enabled

    # --- Catalog ---
    def list_products(self):
        return [ProductOut(**p) for p in DEFAULT_PRODUCTS]

    def list_products_by_category(self, category):
        if category == "All":
            return self.list_products()
        return [ProductOut(**p) for p in DEFAULT_PRODUCTS if p["category"] == category]

    def get_product(self, product_id):
        product = find_default_product(product_id)
        if product is None:
            raise NotFound("Product not found")
        return ProductOut(**product)

    def create_product(self, data):
        fields = data.model_dump()
        fields["image"] = fields["image"] or PLACEHOLDER_IMAGE
        fields["description"] = fields["description"] or ""
        return ProductOut(id=_random_id(), created_at=datetime.now(timezone.utc), **fields)

    def update_product(self, product_id, data):
        raise Unavailable()

    def delete_product(self, product_id):
        raise Unavailable()

    # --- Orders ---
    def _place_order(self, order):
        payment_method = payment_method_of(order)
        order_id = _random_id()
        item_ids = random.sample(range(1, 10000), len(order.items))
        items = [
            OrderItemOut(
                id=item_id,
                order_id=order_id,
                product_id=item.id,
                product_name=item.name,
                product_category=item.category or UNKNOWN_CATEGORY,
                product_price=item.price,
                quantity=item.quantity,
                subtotal=line_subtotal(item),
            )
            for item_id, item in zip(item_ids, order.items)
        ]

        logger.info("Demo order %s synthesized; nothing was stored", order_id)
        return OrderOut(
            id=order_id,
            customer_name=order.customer.name,
            customer_email=order.customer.email,
            customer_address=order.customer.address,
            total=order.total,
            status="pending",
            payment_status=payment_status_for(payment_method),
            payment_method=payment_method,
            created_at=datetime.now(timezone.utc),
            items=items,
        )

    def list_orders(self):
        return [OrderOut(**o) for o in sample_orders()]

    def _update_order_status(self, order_id, status):
        raise Unavailable()

    # --- Analytics ---
    def get_dashboard(self):
        return Dashboard(**demo_dashboard())

    # --- Messages ---
    def create_message(self, data):
        return MessageOut(id=_random_id(), created_at=datetime.now(timezone.utc), **data.model_dump())

    def list_messages(self):
        return []

    # --- Users ---
    def _require_demo_auth(self):
        if not self.demo_auth_enabled:
            raise Unavailable("Database not available")

    def register_user(self, data):
        self._require_demo_auth()
        return UserOut(id=DEMO_ADMIN["id"], email=data.email, name=data.name, role="admin")

    def authenticate(self, data):
        self._require_demo_auth()
        return UserOut(**DEMO_ADMIN)

    def get_user(self, identity):
        return UserOut(id=identity.id, email=identity.email, name=identity.name, role=identity.role)

    def seed_admin(self, data):
        raise Unavailable("Database not available")
