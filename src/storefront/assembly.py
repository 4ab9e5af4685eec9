"""Inventory reservation and order assembly.

Turns a customer's requested line items into a persisted, stock-consistent
Order. Assembly runs in two passes:

1. Pre-validation reads every product and checks existence, market
   ownership and stock without mutating anything.
2. The commit pass decrements stock item by item through the catalog's
   ``update_stock`` compare-and-swap, recording each decrement in a
   ReservationArena. Any failure undoes the arena and re-raises, so a
   failed call leaves no stock change behind.

A compare-and-swap conflict means another reservation won a race for the
same product; the whole assembly is rolled back and retried, up to
``Settings.reservation_attempts`` times.
"""

import time
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from .config import Settings
from .database import Database
from .errors import (
    InsufficientStockError,
    MarketNotFoundError,
    OrderTimeoutError,
    ProductNotFoundError,
    StockConflictError,
    ValidationError,
)
from .inventory import ReservationArena
from .models import Order, OrderItem, OrderItemRequest, OrderStatus, Product, _utc_now
from .pricing import line_subtotal, round2

logger = structlog.get_logger(__name__)


def normalize_items(items: Iterable[OrderItemRequest | Mapping[str, Any]]) -> list[OrderItemRequest]:
    """
    Coerce requested items into OrderItemRequest and check their shape.

    Raises:
        ValidationError: If the list is empty or a quantity isn't a positive integer.
    """
    requests: list[OrderItemRequest] = []
    for item in items:
        if not isinstance(item, OrderItemRequest):
            try:
                item = OrderItemRequest(product_id=item["product_id"], quantity=item["quantity"])
            except (KeyError, TypeError):
                raise ValidationError(f"Malformed order item: {item!r}", field="items")
        quantity = item.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(
                f"Quantity for {item.product_id} must be a positive integer: {quantity!r}",
                field="quantity",
            )
        requests.append(item)

    if not requests:
        raise ValidationError("Order must contain at least one item", field="items")
    return requests


class OrderAssembler:
    """Validates, reserves and prices a cart, then persists it as an Order."""

    def __init__(self, db: Database, settings: Settings | None = None):
        self.db = db
        self.settings = settings or Settings()

    def assemble(
        self,
        customer_id: str,
        market_id: str,
        items: Iterable[OrderItemRequest | Mapping[str, Any]],
    ) -> Order:
        """
        Create a PENDING order, reserving stock for every line.

        Raises:
            ValidationError: Malformed items, a product from another market,
                or a stock update rejected by the catalog.
            MarketNotFoundError: If the market doesn't exist.
            ProductNotFoundError: If a requested product doesn't exist.
            InsufficientStockError: If a quantity exceeds live stock.
            StockConflictError: If every attempt lost a race for stock.
            OrderTimeoutError: If the configured deadline passed mid-assembly.
        """
        requests = normalize_items(items)
        if not self.db.markets.exists(market_id):
            raise MarketNotFoundError(market_id)

        deadline = None
        if self.settings.order_timeout is not None:
            deadline = time.monotonic() + self.settings.order_timeout

        attempts = self.settings.reservation_attempts
        attempt = 1
        while True:
            products = self._prevalidate(market_id, requests)
            try:
                return self._commit(customer_id, market_id, requests, products, deadline)
            except StockConflictError as e:
                if attempt >= attempts:
                    logger.warning(
                        "reservation_gave_up",
                        market_id=market_id,
                        product_id=e.product_id,
                        attempts=attempts,
                    )
                    raise
                logger.info(
                    "reservation_retry",
                    market_id=market_id,
                    product_id=e.product_id,
                    attempt=attempt,
                )
                attempt += 1

    def _prevalidate(self, market_id: str, requests: list[OrderItemRequest]) -> dict[str, Product]:
        """Check every item against live stock before anything is mutated."""
        products: dict[str, Product] = {}
        wanted: dict[str, int] = {}

        for request in requests:
            product = products.get(request.product_id) or self.db.catalog.get_by_id(
                request.product_id
            )
            if product is None:
                raise ProductNotFoundError(request.product_id)
            if product.market_id != market_id:
                raise ValidationError(
                    f"Product {product.id} does not belong to market {market_id}",
                    field="market_id",
                )
            products[product.id] = product

            # Repeated lines for one product draw on the same stock
            wanted[product.id] = wanted.get(product.id, 0) + request.quantity
            if product.stock < wanted[product.id]:
                raise InsufficientStockError(
                    product.id, product.name, wanted[product.id], product.stock
                )

        return products

    def _commit(
        self,
        customer_id: str,
        market_id: str,
        requests: list[OrderItemRequest],
        products: dict[str, Product],
        deadline: float | None,
    ) -> Order:
        order_id = Order.new_id()
        arena = ReservationArena()
        items: list[OrderItem] = []
        expected = {product_id: p.stock for product_id, p in products.items()}

        try:
            for position, request in enumerate(requests, start=1):
                if deadline is not None and time.monotonic() > deadline:
                    raise OrderTimeoutError(self.settings.order_timeout or 0)

                current = expected[request.product_id]
                product = self.db.catalog.update_stock(
                    request.product_id,
                    current - request.quantity,
                    expected_stock=current,
                )
                if product is None:
                    raise ProductNotFoundError(request.product_id)
                expected[request.product_id] = product.stock
                arena.record(product.id, request.quantity)

                items.append(
                    OrderItem(
                        id=f"{order_id}-item-{position}",
                        order_id=order_id,
                        product_id=product.id,
                        product_name=product.name,
                        quantity=request.quantity,
                        unit_price=product.price,
                        discount=product.discount,
                        subtotal=line_subtotal(product.price, product.discount, request.quantity),
                    )
                )

            order = Order(
                id=order_id,
                customer_id=customer_id,
                market_id=market_id,
                items=items,
                total_amount=round2(sum(item.subtotal for item in items)),
                status=OrderStatus.PENDING,
                created_at=_utc_now(),
            )
            order = self.db.orders.create(order)
        except Exception as e:
            restored = len(arena)
            arena.undo(self.db.catalog)
            logger.info(
                "order_rolled_back",
                order_id=order_id,
                market_id=market_id,
                restored_lines=restored,
                error=type(e).__name__,
            )
            raise

        logger.info(
            "order_created",
            order_id=order.id,
            customer_id=customer_id,
            market_id=market_id,
            lines=len(order.items),
            total_amount=order.total_amount,
        )
        return order
