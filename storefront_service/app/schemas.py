"""
Request and response models for the storefront API.

Request models validate incoming JSON. Response models are built from ORM rows
(`from_attributes`) by the live store and from plain dicts by the demo store, so
both produce identical payloads.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Auth ---
class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SeedAdminRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class Identity(BaseModel):
    """The claims carried by a bearer token."""
    id: int
    email: str
    role: str = "admin"
    name: Optional[str] = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: Optional[str] = None
    role: str = "admin"
    created_at: Optional[datetime] = None


# --- Products ---
class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    price: Decimal = Field(..., gt=0)
    category: str = Field(..., min_length=1)
    image: Optional[str] = None
    description: Optional[str] = None
    rating: Decimal = Field(Decimal("0"), ge=0, le=5)
    reviews: int = Field(0, ge=0)
    in_stock: bool = True


class ProductUpdate(BaseModel):
    """Partial update; only the fields present in the request are written."""
    name: Optional[str] = Field(None, min_length=1)
    price: Optional[Decimal] = Field(None, gt=0)
    category: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = None
    description: Optional[str] = None
    rating: Optional[Decimal] = Field(None, ge=0, le=5)
    reviews: Optional[int] = Field(None, ge=0)
    in_stock: Optional[bool] = None

    @field_validator("name", "price", "category", "rating", "reviews", "in_stock")
    @classmethod
    def not_null(cls, value):
        # Omit a field to keep it; null would blank a column products cannot do without.
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: float
    category: str
    image: Optional[str] = None
    description: Optional[str] = None
    rating: float = 0
    reviews: int = 0
    in_stock: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Orders ---
class CartItem(BaseModel):
    """One line of the cart as sent by the storefront at checkout."""
    id: int
    name: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., gt=0)
    category: Optional[str] = None


class Customer(BaseModel):
    name: str = ""
    email: str = ""
    address: str = ""


class OrderCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[CartItem] = []
    customer: Optional[Customer] = None
    total: Decimal = Field(..., ge=0)
    payment_method: Optional[str] = Field(None, alias="paymentMethod")


class StatusUpdate(BaseModel):
    status: str


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: Optional[int] = None
    product_id: int
    product_name: str
    product_category: Optional[str] = None
    product_price: float
    quantity: int
    subtotal: float


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_name: str
    customer_email: str
    customer_address: str
    total: float
    status: str
    payment_status: str
    payment_method: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut] = []


# --- Analytics ---
class RecentOrder(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_name: str
    total: float
    status: str
    created_at: Optional[datetime] = None


class CategorySales(BaseModel):
    category: str
    total: float


class MonthlySales(BaseModel):
    month: str
    sales: float


class Dashboard(BaseModel):
    totalOrders: int = 0
    totalRevenue: float = 0
    totalProducts: int = 0
    totalCustomers: int = 0
    recentOrders: List[RecentOrder] = []
    salesByCategory: List[CategorySales] = []
    monthlySales: List[MonthlySales] = []


# --- Messages ---
class MessageCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    message: str
    created_at: Optional[datetime] = None
