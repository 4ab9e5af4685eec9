"""Sales reporting over stored orders."""

from dataclasses import dataclass, field
from typing import Any

from .models import Order, OrderStatus
from .pricing import round2


@dataclass
class ProductSales:
    product_id: str
    product_name: str
    quantity_sold: int = 0
    revenue: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity_sold": self.quantity_sold,
            "revenue": self.revenue,
        }


@dataclass
class MarketReport:
    """Revenue and volume for one market. Only CONFIRMED orders count as sales."""

    market_id: str
    total_revenue: float = 0.0
    total_orders: int = 0
    confirmed_orders: int = 0
    pending_orders: int = 0
    cancelled_orders: int = 0
    total_items_sold: int = 0
    average_order_value: float = 0.0
    product_sales: list[ProductSales] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "market_id": self.market_id,
            "total_revenue": self.total_revenue,
            "total_orders": self.total_orders,
            "confirmed_orders": self.confirmed_orders,
            "pending_orders": self.pending_orders,
            "cancelled_orders": self.cancelled_orders,
            "total_items_sold": self.total_items_sold,
            "average_order_value": self.average_order_value,
            "product_sales": [s.to_dict() for s in self.product_sales],
        }


def generate_market_report(orders: list[Order], market_id: str) -> MarketReport:
    """
    Aggregate a market's orders.

    Orders from other markets in ``orders`` are ignored. Product sales are
    sorted by quantity sold, highest first.
    """
    orders = [o for o in orders if o.market_id == market_id]
    confirmed = [o for o in orders if o.status is OrderStatus.CONFIRMED]

    sales: dict[str, ProductSales] = {}
    revenue = 0.0
    items_sold = 0
    for order in confirmed:
        revenue += order.total_amount
        for item in order.items:
            items_sold += item.quantity
            entry = sales.setdefault(item.product_id, ProductSales(item.product_id, item.product_name))
            entry.quantity_sold += item.quantity
            entry.revenue += item.subtotal

    for entry in sales.values():
        entry.revenue = round2(entry.revenue)

    return MarketReport(
        market_id=market_id,
        total_revenue=round2(revenue),
        total_orders=len(orders),
        confirmed_orders=len(confirmed),
        pending_orders=sum(1 for o in orders if o.status is OrderStatus.PENDING),
        cancelled_orders=sum(1 for o in orders if o.status is OrderStatus.CANCELLED),
        total_items_sold=items_sold,
        average_order_value=round2(revenue / len(confirmed)) if confirmed else 0.0,
        product_sales=sorted(sales.values(), key=lambda s: s.quantity_sold, reverse=True),
    )
