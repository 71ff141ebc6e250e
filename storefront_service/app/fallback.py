"""
Built-in data served while the database is unreachable (demo mode).

DEFAULT_PRODUCTS also backs product lookups in live mode: an empty products
table serves this catalog, and ids missing from the table resolve here.
"""
from datetime import datetime, timedelta, timezone

CATEGORIES = ["All", "Electronics", "Clothing", "Accessories", "Sports", "Home"]

PLACEHOLDER_IMAGE = "https://via.placeholder.com/300x300?text=No+Image"


def _unsplash(photo: str) -> str:
    return f"https://images.unsplash.com/{photo}?w=300&h=300&fit=crop"


DEFAULT_PRODUCTS = [
    {
        "id": 1,
        "name": "Wireless Bluetooth Headphones",
        "price": 79.99,
        "category": "Electronics",
        "image": _unsplash("photo-1505740420928-5e560c06d30e"),
        "description": "Premium wireless headphones with noise cancellation and 30-hour battery life.",
        "rating": 4.5,
        "reviews": 234,
    },
    {
        "id": 2,
        "name": "Organic Cotton T-Shirt",
        "price": 29.99,
        "category": "Clothing",
        "image": _unsplash("photo-1521572163474-6864f9cf17ab"),
        "description": "Comfortable 100% organic cotton t-shirt available in multiple colors.",
        "rating": 4.2,
        "reviews": 89,
    },
    {
        "id": 3,
        "name": "Smart Watch Pro",
        "price": 299.99,
        "category": "Electronics",
        "image": _unsplash("photo-1546868871-7041f2a55e12"),
        "description": "Advanced smartwatch with health monitoring, GPS, and waterproof design.",
        "rating": 4.8,
        "reviews": 567,
    },
    {
        "id": 4,
        "name": "Leather Messenger Bag",
        "price": 149.99,
        "category": "Accessories",
        "image": _unsplash("photo-1548036328-c9fa89d128fa"),
        "description": "Genuine leather messenger bag with laptop compartment and multiple pockets.",
        "rating": 4.6,
        "reviews": 123,
    },
    {
        "id": 5,
        "name": "Running Shoes Ultra",
        "price": 129.99,
        "category": "Sports",
        "image": _unsplash("photo-1542291026-7eec264c27ff"),
        "description": "Lightweight running shoes with superior cushioning and breathable mesh.",
        "rating": 4.7,
        "reviews": 345,
    },
    {
        "id": 6,
        "name": "Stainless Steel Water Bottle",
        "price": 24.99,
        "category": "Home",
        "image": _unsplash("photo-1602143407151-7111542de6e8"),
        "description": "Double-walled insulated water bottle that keeps drinks cold for 24 hours.",
        "rating": 4.4,
        "reviews": 78,
    },
    {
        "id": 7,
        "name": "Wireless Charging Pad",
        "price": 39.99,
        "category": "Electronics",
        "image": _unsplash("photo-1586816879360-004f5b0c51e5"),
        "description": "Fast wireless charging pad compatible with all Qi-enabled devices.",
        "rating": 4.3,
        "reviews": 156,
    },
    {
        "id": 8,
        "name": "Yoga Mat Premium",
        "price": 49.99,
        "category": "Sports",
        "image": _unsplash("photo-1601925260368-ae2f83cf8b7f"),
        "description": "Non-slip yoga mat with extra cushioning for comfortable practice.",
        "rating": 4.6,
        "reviews": 234,
    },
    {
        "id": 9,
        "name": "Sunglasses Classic",
        "price": 89.99,
        "category": "Accessories",
        "image": _unsplash("photo-1572635196237-14b3f281503f"),
        "description": "Classic polarized sunglasses with UV400 protection.",
        "rating": 4.5,
        "reviews": 67,
    },
    {
        "id": 10,
        "name": "Ceramic Coffee Mug Set",
        "price": 34.99,
        "category": "Home",
        "image": _unsplash("photo-1514228742587-6b1558fcca3d"),
        "description": "Set of 4 handmade ceramic mugs with elegant design.",
        "rating": 4.2,
        "reviews": 45,
    },
    {
        "id": 11,
        "name": "Denim Jacket Classic",
        "price": 79.99,
        "category": "Clothing",
        "image": _unsplash("photo-1576995853123-5a10305d93c0"),
        "description": "Timeless denim jacket with modern fit and authentic wash.",
        "rating": 4.4,
        "reviews": 189,
    },
    {
        "id": 12,
        "name": "Portable Bluetooth Speaker",
        "price": 59.99,
        "category": "Electronics",
        "image": _unsplash("photo-1608043152269-423dbba4e7e1"),
        "description": "Waterproof portable speaker with 360-degree sound and 12-hour battery.",
        "rating": 4.6,
        "reviews": 278,
    },
]


def find_default_product(product_id: int):
    return next((p for p in DEFAULT_PRODUCTS if p["id"] == product_id), None)


def _item(item_id, order_id, product_id, quantity, category=None):
    product = find_default_product(product_id)
    price = product["price"]
    return {
        "id": item_id,
        "order_id": order_id,
        "product_id": product_id,
        "product_name": product["name"],
        "product_category": category or product["category"],
        "product_price": price,
        "quantity": quantity,
        "subtotal": round(price * quantity, 2),
    }


def sample_orders(now=None):
    """Four illustrative orders, newest first, one day apart."""
    now = now or datetime.now(timezone.utc)
    day = timedelta(days=1)
    return [
        {
            "id": 1001,
            "customer_name": "John Doe",
            "customer_email": "john@example.com",
            "customer_address": "123 Main St, New York, NY 10001",
            "total": 159.99,
            "status": "pending",
            "payment_status": "completed",
            "payment_method": "card",
            "created_at": now,
            "items": [_item(1, 1001, 1, 1), _item(2, 1001, 6, 2), _item(3, 1001, 7, 1)],
        },
        {
            "id": 1002,
            "customer_name": "Jane Smith",
            "customer_email": "jane@example.com",
            "customer_address": "456 Oak Ave, Los Angeles, CA 90001",
            "total": 229.99,
            "status": "processing",
            "payment_status": "completed",
            "payment_method": "card",
            "created_at": now - day,
            "items": [_item(4, 1002, 3, 1)],
        },
        {
            "id": 1003,
            "customer_name": "Bob Wilson",
            "customer_email": "bob@example.com",
            "customer_address": "789 Pine Rd, Chicago, IL 60601",
            "total": 449.97,
            "status": "shipped",
            "payment_status": "completed",
            "payment_method": "card",
            "created_at": now - 2 * day,
            "items": [_item(5, 1003, 4, 1), _item(6, 1003, 5, 1), _item(7, 1003, 8, 1)],
        },
        {
            "id": 1004,
            "customer_name": "Alice Brown",
            "customer_email": "alice@example.com",
            "customer_address": "321 Elm St, Houston, TX 77001",
            "total": 89.97,
            "status": "delivered",
            "payment_status": "pending",
            "payment_method": "cod",
            "created_at": now - 3 * day,
            "items": [_item(8, 1004, 2, 2), _item(9, 1004, 10, 1)],
        },
    ]


def demo_dashboard(now=None):
    now = now or datetime.now(timezone.utc)
    return {
        "totalOrders": 156,
        "totalRevenue": 24567.89,
        "totalProducts": len(DEFAULT_PRODUCTS),
        "totalCustomers": 89,
        "recentOrders": [
            {"id": 1001, "customer_name": "John Doe", "total": 129.99, "status": "pending", "created_at": now},
            {"id": 1002, "customer_name": "Jane Smith", "total": 79.99, "status": "processing", "created_at": now},
            {"id": 1003, "customer_name": "Bob Wilson", "total": 249.99, "status": "shipped", "created_at": now},
        ],
        "salesByCategory": [
            {"category": "Electronics", "total": 12500},
            {"category": "Clothing", "total": 4500},
            {"category": "Accessories", "total": 3200},
            {"category": "Sports", "total": 2800},
            {"category": "Home", "total": 1567.89},
        ],
        "monthlySales": [
            {"month": "Jan", "sales": 3200},
            {"month": "Feb", "sales": 4100},
            {"month": "Mar", "sales": 3800},
            {"month": "Apr", "sales": 5200},
            {"month": "May", "sales": 4800},
            {"month": "Jun", "sales": 5467.89},
        ],
    }
