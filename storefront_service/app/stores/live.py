import calendar
import logging
from collections import OrderedDict
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..checkout import UNKNOWN_CATEGORY, line_subtotal, payment_method_of, payment_status_for
from ..errors import Conflict, NotFound, PersistenceError, Unauthorized
from ..fallback import DEFAULT_PRODUCTS, find_default_product
from ..models import Message, Order, OrderItem, Product, User, utcnow
from ..schemas import (
    CategorySales,
    Dashboard,
    MessageOut,
    MonthlySales,
    OrderItemOut,
    OrderOut,
    ProductOut,
    RecentOrder,
    UserOut,
)
from ..security import hash_password, verify_password
from .base import StorefrontStore

logger = logging.getLogger(__name__)

DEFAULT_ADMIN = {"email": "admin@minishop.com", "password": "admin123", "name": "Admin"}

RECENT_ORDERS_LIMIT = 5
MONTHLY_SALES_WINDOW = 6


def months_before(moment: datetime, months: int) -> datetime:
    """Same wall-clock moment `months` calendar months earlier, day clamped to month length."""
    index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _default_catalog():
    return [ProductOut(**p) for p in DEFAULT_PRODUCTS]


def _order_out(header, items=()):
    return OrderOut(
        id=header.id,
        customer_name=header.customer_name,
        customer_email=header.customer_email,
        customer_address=header.customer_address,
        total=header.total,
        status=header.status,
        payment_status=header.payment_status,
        payment_method=header.payment_method,
        created_at=header.created_at,
        updated_at=header.updated_at,
        items=[OrderItemOut.model_validate(item) for item in items],
    )


class LiveStore(StorefrontStore):
    """Database-backed store; one instance per request, bound to that request's session."""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, action: str, conflict: str = None):
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if conflict:
                raise Conflict(conflict) from e
            logger.error("Failed to %s: %s", action, e)
            raise PersistenceError(f"Failed to {action}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to %s: %s", action, e)
            raise PersistenceError(f"Failed to {action}") from e

    # --- Catalog ---
    def list_products(self):
        try:
            rows = self.db.query(Product).order_by(Product.created_at.desc(), Product.id.desc()).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error fetching products, serving built-in catalog: %s", e)
            return _default_catalog()
        # An empty table serves the built-in catalog until real products exist.
        if not rows:
            return _default_catalog()
        return [ProductOut.model_validate(row) for row in rows]

    def list_products_by_category(self, category):
        if category == "All":
            return self.list_products()
        try:
            rows = (
                self.db.query(Product)
                .filter(Product.category == category)
                .order_by(Product.created_at.desc(), Product.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error fetching %s products, serving built-in catalog: %s", category, e)
            return [p for p in _default_catalog() if p.category == category]
        return [ProductOut.model_validate(row) for row in rows]

    def get_product(self, product_id):
        try:
            row = self.db.get(Product, product_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error fetching product %s, trying built-in catalog: %s", product_id, e)
            row = None
        if row is not None:
            return ProductOut.model_validate(row)
        default = find_default_product(product_id)
        if default is not None:
            return ProductOut(**default)
        raise NotFound("Product not found")

    def create_product(self, data):
        product = Product(**data.model_dump())
        self.db.add(product)
        self._commit("create product")
        self.db.refresh(product)
        logger.info("Product %s created", product.id)
        return ProductOut.model_validate(product)

    def update_product(self, product_id, data):
        product = self.db.get(Product, product_id)
        if product is None:
            raise NotFound("Product not found")
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(product, key, value)
        product.updated_at = utcnow()
        self._commit("update product")
        self.db.refresh(product)
        return ProductOut.model_validate(product)

    def delete_product(self, product_id):
        product = self.db.get(Product, product_id)
        if product is None:
            raise NotFound("Product not found")
        self.db.delete(product)
        self._commit("delete product")
        logger.info("Product %s deleted", product_id)

    # --- Orders ---
    def _place_order(self, order):
        """
        Writes the order header and its line items in one transaction.

        - Item name, category and price are copied from the cart so the order
          survives later catalog changes.
        - Subtotals are computed here and stored.
        - Any failure rolls back the whole order before the error is raised.
        """
        payment_method = payment_method_of(order)
        customer = order.customer
        try:
            header = Order(
                customer_name=customer.name,
                customer_email=customer.email,
                customer_address=customer.address,
                total=order.total,
                status="pending",
                payment_status=payment_status_for(payment_method),
                payment_method=payment_method,
            )
            self.db.add(header)
            self.db.flush()  # Assigns header.id for the line items.

            for item in order.items:
                self.db.add(
                    OrderItem(
                        order_id=header.id,
                        product_id=item.id,
                        product_name=item.name,
                        product_category=item.category or UNKNOWN_CATEGORY,
                        product_price=item.price,
                        quantity=item.quantity,
                        subtotal=line_subtotal(item),
                    )
                )
            self.db.flush()

            items = (
                self.db.query(OrderItem)
                .filter(OrderItem.order_id == header.id)
                .order_by(OrderItem.id.asc())
                .all()
            )
            result = _order_out(header, items)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error saving order: %s", e)
            raise PersistenceError(f"Failed to save order: {e}") from e
        except Exception:
            self.db.rollback()
            raise

        logger.info("Order %s placed with %d item(s), payment %s", result.id, len(result.items), result.payment_status)
        return result

    def list_orders(self):
        # One LEFT JOIN, regrouped into orders; order id breaks created_at ties so groups stay contiguous.
        try:
            rows = (
                self.db.query(Order, OrderItem)
                .outerjoin(OrderItem, Order.id == OrderItem.order_id)
                .order_by(Order.created_at.desc(), Order.id.desc(), OrderItem.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error fetching orders: %s", e)
            raise PersistenceError("Failed to fetch orders") from e

        orders = OrderedDict()
        for header, item in rows:
            if header.id not in orders:
                orders[header.id] = _order_out(header)
            # Orders without items come back with a NULL item side; skip it.
            if item is not None and item.id is not None:
                orders[header.id].items.append(OrderItemOut.model_validate(item))
        return list(orders.values())

    def _update_order_status(self, order_id, status):
        order = self.db.get(Order, order_id)
        if order is None:
            raise NotFound("Order not found")
        order.status = status
        order.updated_at = utcnow()
        self._commit("update order status")
        self.db.refresh(order)
        logger.info("Order %s moved to %s", order_id, status)
        return _order_out(order, order.items)

    # --- Analytics ---
    def get_dashboard(self):
        """Dashboard figures; any query failure yields an all-zero dashboard instead of an error."""
        try:
            total_orders, revenue = self.db.query(
                func.count(Order.id), func.coalesce(func.sum(Order.total), 0)
            ).one()
            total_products = self.db.query(func.count(Product.id)).scalar()
            total_customers = self.db.query(func.count(Order.customer_email.distinct())).scalar()

            recent = (
                self.db.query(Order)
                .order_by(Order.created_at.desc(), Order.id.desc())
                .limit(RECENT_ORDERS_LIMIT)
                .all()
            )

            category = func.coalesce(OrderItem.product_category, UNKNOWN_CATEGORY)
            category_total = func.coalesce(func.sum(OrderItem.subtotal), 0)
            by_category = (
                self.db.query(category, category_total)
                .group_by(OrderItem.product_category)
                .order_by(category_total.desc())
                .all()
            )

            return Dashboard(
                totalOrders=total_orders or 0,
                totalRevenue=float(revenue or 0),
                totalProducts=total_products or 0,
                totalCustomers=total_customers or 0,
                recentOrders=[RecentOrder.model_validate(o) for o in recent],
                salesByCategory=[CategorySales(category=c, total=float(t or 0)) for c, t in by_category],
                monthlySales=self._monthly_sales(),
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error fetching analytics: %s", e)
            return Dashboard()

    def _monthly_sales(self):
        cutoff = months_before(datetime.now(timezone.utc), MONTHLY_SALES_WINDOW)
        rows = self.db.query(Order.created_at, Order.total).filter(Order.created_at >= cutoff).all()

        # Grouped here rather than in SQL so SQLite and PostgreSQL behave the same.
        totals = {}
        for created_at, total in rows:
            key = (created_at.year, created_at.month)
            totals[key] = totals.get(key, Decimal("0")) + Decimal(total or 0)
        return [
            MonthlySales(month=calendar.month_abbr[month], sales=float(totals[(year, month)]))
            for year, month in sorted(totals)
        ]

    # --- Messages ---
    def create_message(self, data):
        message = Message(**data.model_dump())
        self.db.add(message)
        self._commit("save message")
        self.db.refresh(message)
        return MessageOut.model_validate(message)

    def list_messages(self):
        rows = self.db.query(Message).order_by(Message.created_at.desc(), Message.id.desc()).all()
        return [MessageOut.model_validate(row) for row in rows]

    # --- Users ---
    def _insert_user(self, email, password, name, role="admin"):
        user = User(email=email, password=hash_password(password), name=name, role=role)
        self.db.add(user)
        self._commit("create user", conflict="User already exists")
        self.db.refresh(user)
        logger.info("User %s registered with role %s", user.email, user.role)
        return UserOut.model_validate(user)

    def register_user(self, data):
        if self.db.query(User.id).filter(User.email == data.email).first():
            raise Conflict("User already exists")
        return self._insert_user(data.email, data.password, data.name)

    def authenticate(self, data):
        user = self.db.query(User).filter(User.email == data.email).first()
        if user is None or not verify_password(data.password, user.password):
            logger.warning("Failed login for %s", data.email)
            raise Unauthorized("Invalid credentials")
        return UserOut.model_validate(user)

    def get_user(self, identity):
        user = self.db.get(User, identity.id)
        if user is None:
            raise NotFound("User not found")
        return UserOut.model_validate(user)

    def seed_admin(self, data):
        existing = self.db.query(User).filter(User.role == "admin").order_by(User.id).first()
        if existing is not None:
            return UserOut.model_validate(existing), False
        user = self._insert_user(
            data.email or DEFAULT_ADMIN["email"],
            data.password or DEFAULT_ADMIN["password"],
            data.name or DEFAULT_ADMIN["name"],
        )
        return user, True
