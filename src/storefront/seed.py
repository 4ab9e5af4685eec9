"""Deterministic demo data loaded at process start."""

from .models import Market, Product, User, UserRole

SEED_TIMESTAMP = "2024-01-01T00:00:00Z"

MARKETS = [
    ("market-a", "Market A", "Your trusted market with fresh produce"),
    ("market-b", "Market B", "The best prices in the neighbourhood"),
    ("market-c", "Market C", "Quality and variety in one place"),
]

# (name, category, price, stock, discount)
CATALOG = [
    ("Rice", "Pantry", 5.49, 40, 0),
    ("Black Beans", "Pantry", 7.90, 25, 10),
    ("Spaghetti", "Pantry", 3.25, 60, 0),
    ("Olive Oil", "Pantry", 24.90, 12, 15),
    ("Ground Coffee", "Beverages", 16.80, 30, 0),
    ("Orange Juice", "Beverages", 8.99, 18, 20),
    ("Whole Milk", "Dairy", 4.59, 50, 0),
    ("Greek Yogurt", "Dairy", 6.30, 22, 5),
    ("Cheddar", "Dairy", 12.75, 15, 0),
    ("French Bread", "Bakery", 1.20, 80, 0),
    ("Chicken Breast", "Butcher", 19.90, 20, 12),
    ("Tomatoes", "Produce", 6.49, 35, 0),
    ("Bananas", "Produce", 4.99, 45, 25),
    ("Dish Soap", "Cleaning", 2.79, 33, 0),
    ("Shampoo", "Personal Care", 13.40, 14, 10),
]


def seed_markets() -> list[Market]:
    return [
        Market(
            id=market_id,
            name=name,
            description=description,
            admin_id=f"admin-{market_id.rsplit('-', 1)[-1]}",
            created_at=SEED_TIMESTAMP,
            updated_at=SEED_TIMESTAMP,
        )
        for market_id, name, description in MARKETS
    ]


def seed_users(markets: list[Market]) -> list[User]:
    users = [
        User(
            id="customer-1",
            name="Regular Customer",
            email="customer@example.com",
            role=UserRole.CUSTOMER,
            created_at=SEED_TIMESTAMP,
        )
    ]
    for market in markets:
        users.append(
            User(
                id=market.admin_id,
                name=f"{market.name} Admin",
                email=f"{market.admin_id}@example.com",
                role=UserRole.ADMIN,
                market_id=market.id,
                created_at=SEED_TIMESTAMP,
            )
        )
    return users


def seed_products(markets: list[Market]) -> list[Product]:
    """Every market carries the same catalog with market-specific prices and stock."""
    products = []
    for offset, market in enumerate(markets):
        for i, (name, category, price, stock, discount) in enumerate(CATALOG, start=1):
            products.append(
                Product(
                    id=f"{market.id}-product-{i}",
                    market_id=market.id,
                    name=name,
                    description="Quality product for your everyday needs",
                    category=category,
                    price=round(price + offset * 0.5, 2),
                    stock=stock + offset * 5,
                    discount=discount,
                    created_at=SEED_TIMESTAMP,
                    updated_at=SEED_TIMESTAMP,
                )
            )
    return products


def load_seed(db) -> None:
    """Populate an empty Database in place."""
    markets = seed_markets()
    for market in markets:
        db.markets.add_market(market)
    for user in seed_users(markets):
        db.users.add_user(user)
    for product in seed_products(markets):
        db.catalog.add_product(product)
