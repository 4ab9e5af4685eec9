"""Service facades consumed by the API, CLI and cart sessions."""

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any

from .assembly import OrderAssembler
from .config import Settings
from .database import Database
from .lifecycle import OrderLifecycle
from .models import CreateOrderInput, Order, OrderItemRequest, ProductWithFinalPrice
from .pricing import with_final_price


class OrderService:
    """Order creation, status changes and order lookups."""

    def __init__(self, db: Database, settings: Settings | None = None):
        self.db = db
        self.settings = settings or Settings()
        self.assembler = OrderAssembler(db, self.settings)
        self.lifecycle = OrderLifecycle(db)

    async def create_order(self, order_input: CreateOrderInput) -> Order:
        """Create an order without blocking the event loop."""
        return await asyncio.to_thread(
            self.assembler.assemble,
            order_input.customer_id,
            order_input.market_id,
            order_input.items,
        )

    def place_order(
        self,
        customer_id: str,
        market_id: str,
        items: Iterable[OrderItemRequest | Mapping[str, Any]],
    ) -> Order:
        """Synchronous variant of create_order."""
        return self.assembler.assemble(customer_id, market_id, items)

    def confirm_order(self, order_id: str) -> Order:
        return self.lifecycle.confirm(order_id)

    def cancel_order(self, order_id: str) -> Order:
        return self.lifecycle.cancel(order_id)

    def get_orders_by_market(self, market_id: str) -> list[Order]:
        return self.db.orders.get_by_market(market_id)

    def get_orders_by_customer(self, customer_id: str) -> list[Order]:
        return self.db.orders.get_by_customer(customer_id)

    def get_order_by_id(self, order_id: str) -> Order | None:
        return self.db.orders.get_by_id(order_id)


class ProductService:
    """Customer-facing catalog reads; every product leaves with its final price."""

    def __init__(self, db: Database):
        self.db = db

    def get_products_by_market(self, market_id: str) -> list[ProductWithFinalPrice]:
        return [with_final_price(p) for p in self.db.catalog.get_by_market(market_id)]

    def get_product(self, product_id: str) -> ProductWithFinalPrice | None:
        product = self.db.catalog.get_by_id(product_id)
        return with_final_price(product) if product is not None else None

    def search(self, market_id: str, query: str) -> list[ProductWithFinalPrice]:
        """Case-insensitive substring match on product name or category."""
        q = query.strip().lower()
        if not q:
            return self.get_products_by_market(market_id)
        return [
            p
            for p in self.get_products_by_market(market_id)
            if q in p.name.lower() or q in p.category.lower()
        ]

    def categories(self, market_id: str) -> list[str]:
        return sorted({p.category for p in self.db.catalog.get_by_market(market_id)})
