"""Product catalog storage for storefront.

The catalog is the authoritative owner of price, discount and stock.
Every stock change in the system, whether an admin edit, an order
reservation, a rollback or a cancellation, goes through
``CatalogStore.update_stock`` so the non-negative invariant holds on
every path.
"""

import math
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Iterator

import structlog

from .errors import MarketNotFoundError, StockConflictError, ValidationError
from .market_store import MarketStore
from .models import Product, _utc_now

logger = structlog.get_logger(__name__)

# Fields update() refuses to touch
IMMUTABLE_FIELDS = frozenset({"id", "market_id", "created_at"})
UPDATABLE_FIELDS = frozenset(
    {"name", "description", "price", "stock", "discount", "category", "image_url"}
)


def validate_price(price: float) -> None:
    if not math.isfinite(price):
        raise ValidationError(f"Price must be a finite number: {price}", field="price")
    if price < 0:
        raise ValidationError(f"Price cannot be negative: {price}", field="price")


def validate_discount(discount: float) -> None:
    if not math.isfinite(discount) or not 0 <= discount <= 100:
        raise ValidationError(
            f"Discount must be between 0 and 100: {discount}", field="discount"
        )


def validate_stock(stock: int) -> None:
    if isinstance(stock, bool) or not isinstance(stock, int):
        raise ValidationError(f"Stock must be an integer: {stock!r}", field="stock")
    if stock < 0:
        raise ValidationError(f"Stock cannot be negative: {stock}", field="stock")


class CatalogStore:
    """Holds products keyed by ID, in insertion order."""

    def __init__(self, markets: MarketStore):
        self._markets = markets
        self._products: dict[str, Product] = {}
        self._counter = 0
        self._mutex = threading.RLock()

    @contextmanager
    def _lock(self) -> Iterator[None]:
        """Serialize read-modify-write operations on the catalog."""
        with self._mutex:
            yield

    # --- Reads ---

    def list_products(self) -> list[Product]:
        with self._lock():
            return [replace(p) for p in self._products.values()]

    def get_by_market(self, market_id: str) -> list[Product]:
        """All products of a market, in insertion order."""
        with self._lock():
            return [replace(p) for p in self._products.values() if p.market_id == market_id]

    def get_by_id(self, product_id: str) -> Product | None:
        with self._lock():
            product = self._products.get(product_id)
            return replace(product) if product is not None else None

    # --- Writes ---

    def create(
        self,
        market_id: str,
        name: str,
        price: float,
        stock: int = 0,
        discount: float = 0,
        description: str = "",
        category: str = "general",
        image_url: str = "",
    ) -> Product:
        """
        Create a product in a market.

        Returns:
            The created Product with a fresh ID and timestamps.

        Raises:
            MarketNotFoundError: If the market doesn't exist.
            ValidationError: If price, discount or stock are out of range.
        """
        if not self._markets.exists(market_id):
            raise MarketNotFoundError(market_id)
        validate_price(price)
        validate_discount(discount)
        validate_stock(stock)

        with self._lock():
            product_id = self._next_id(market_id)
            now = _utc_now()
            product = Product(
                id=product_id,
                market_id=market_id,
                name=name,
                price=price,
                stock=stock,
                discount=discount,
                description=description,
                category=category,
                image_url=image_url,
                created_at=now,
                updated_at=now,
            )
            self._products[product_id] = product
            logger.debug("product_created", product_id=product_id, market_id=market_id)
            return replace(product)

    def add_product(self, product: Product) -> Product:
        """Insert a pre-built record (used for seeding)."""
        if not self._markets.exists(product.market_id):
            raise MarketNotFoundError(product.market_id)
        validate_price(product.price)
        validate_discount(product.discount)
        validate_stock(product.stock)
        with self._lock():
            if product.id in self._products:
                raise ValidationError(f"Product already exists: {product.id}", field="id")
            self._products[product.id] = replace(product)
            return replace(product)

    def update(self, product_id: str, **fields: Any) -> Product | None:
        """
        Merge ``fields`` into a product and refresh ``updated_at``.

        Returns:
            The updated Product, or None if the product doesn't exist.

        Raises:
            ValidationError: On an immutable/unknown field or an out-of-range value.
        """
        blocked = IMMUTABLE_FIELDS.intersection(fields)
        if blocked:
            raise ValidationError(
                f"Cannot change {', '.join(sorted(blocked))} of a product",
                field=sorted(blocked)[0],
            )
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown product field(s): {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        if "price" in fields:
            validate_price(fields["price"])
        if "discount" in fields:
            validate_discount(fields["discount"])
        stock = fields.pop("stock", None)
        if stock is not None:
            validate_stock(stock)

        with self._lock():
            if product_id not in self._products:
                return None
            if stock is not None:
                self.update_stock(product_id, stock)
            updated = replace(self._products[product_id], **fields, updated_at=_utc_now())
            self._products[product_id] = updated
            return replace(updated)

    def update_price(self, product_id: str, price: float) -> Product | None:
        validate_price(price)
        return self.update(product_id, price=price)

    def update_discount(self, product_id: str, discount: float) -> Product | None:
        validate_discount(discount)
        return self.update(product_id, discount=discount)

    def update_stock(
        self,
        product_id: str,
        stock: int,
        expected_stock: int | None = None,
    ) -> Product | None:
        """
        Set a product's stock.

        Args:
            product_id: Product ID.
            stock: New stock level; must be >= 0.
            expected_stock: When given, the write only applies if the live
                stock still equals this value (compare-and-swap).

        Returns:
            The updated Product, or None if the product doesn't exist.

        Raises:
            ValidationError: If ``stock`` is negative or not an integer.
            StockConflictError: If ``expected_stock`` doesn't match.
        """
        validate_stock(stock)
        with self._lock():
            product = self._products.get(product_id)
            if product is None:
                return None
            if expected_stock is not None and product.stock != expected_stock:
                raise StockConflictError(product_id, expected_stock, product.stock)
            updated = replace(product, stock=stock, updated_at=_utc_now())
            self._products[product_id] = updated
            logger.debug(
                "stock_updated", product_id=product_id, old=product.stock, new=stock
            )
            return replace(updated)

    def delete(self, product_id: str) -> bool:
        with self._lock():
            return self._products.pop(product_id, None) is not None

    def _next_id(self, market_id: str) -> str:
        while True:
            self._counter += 1
            candidate = f"{market_id}-product-{self._counter}"
            if candidate not in self._products:
                return candidate
