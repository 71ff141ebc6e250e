from decimal import Decimal, ROUND_HALF_UP

from .errors import InvalidInput
from .schemas import CartItem, OrderCreate

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")
PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded")

DEFAULT_PAYMENT_METHOD = "card"
CASH_ON_DELIVERY = "cod"
UNKNOWN_CATEGORY = "Unknown"

CENTS = Decimal("0.01")


def validate_checkout(order: OrderCreate):
    """Rejects a checkout before anything touches the database."""
    if not order.items:
        raise InvalidInput("No items in order")
    customer = order.customer
    if customer is None or not (customer.name.strip() and customer.email.strip() and customer.address.strip()):
        raise InvalidInput("Invalid customer information")


def validate_status(status: str):
    if status not in ORDER_STATUSES:
        raise InvalidInput("Invalid status")


def payment_method_of(order: OrderCreate) -> str:
    return order.payment_method or DEFAULT_PAYMENT_METHOD


def payment_status_for(payment_method: str) -> str:
    # Cash on delivery is collected later; every other method is paid at checkout.
    return "pending" if payment_method == CASH_ON_DELIVERY else "completed"


def line_subtotal(item: CartItem) -> Decimal:
    return (item.price * item.quantity).quantize(CENTS, rounding=ROUND_HALF_UP)
