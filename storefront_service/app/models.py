from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from .checkout import ORDER_STATUSES, PAYMENT_STATUSES
from .database import Base  # Import the Base class from our database setup


def utcnow():
    return datetime.now(timezone.utc)


def _one_of(column, values):
    return "%s IN (%s)" % (column, ", ".join("'%s'" % v for v in values))


# Defines the ORM model for an admin account.
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash, never the plain password.
    name = Column(String(255), nullable=False)
    role = Column(String(50), default="admin")
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)


# Defines the ORM model for a catalog entry.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    image = Column(String(500))  # Image URL, uploads are handled elsewhere.
    description = Column(Text)
    rating = Column(Numeric(3, 2), default=0)
    reviews = Column(Integer, default=0)  # Number of reviews.
    in_stock = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


# Defines the ORM model for an order header.
class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_address = Column(Text, nullable=False)
    total = Column(Numeric(10, 2), nullable=False)  # As submitted by the client.
    status = Column(String(50), default="pending")
    payment_status = Column(String(50), default="pending")
    payment_method = Column(String(50))
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItem.id",
    )

    __table_args__ = (
        CheckConstraint(_one_of("status", ORDER_STATUSES), name="ck_orders_status"),
        CheckConstraint(_one_of("payment_status", PAYMENT_STATUSES), name="ck_orders_payment_status"),
    )


# Defines the ORM model for one line of an order.
# Product fields are copied at checkout so later catalog edits leave old orders intact.
class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    product_id = Column(Integer, nullable=False)  # Snapshot, not a foreign key.
    product_name = Column(String(255), nullable=False)
    product_category = Column(String(100))
    product_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)  # price * quantity at insert time.

    order = relationship("Order", back_populates="items")


# Defines the ORM model for a contact form submission.
class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
