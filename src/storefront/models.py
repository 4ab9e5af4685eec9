"""Data models for storefront."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
import uuid


def _utc_now() -> str:
    """Return current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _generate_id() -> str:
    """Generate a new opaque ID."""
    return uuid.uuid4().hex


@dataclass
class Market:
    """An independently operated market with a single admin."""

    id: str
    name: str
    admin_id: str
    description: str = ""
    created_at: str = field(default_factory=_utc_now)
    updated_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "admin_id": self.admin_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class Product:
    """A catalog entry owned by exactly one market."""

    id: str
    market_id: str
    name: str
    price: float
    stock: int = 0
    discount: float = 0  # percent, 0-100
    description: str = ""
    category: str = "general"
    image_url: str = ""
    created_at: str = field(default_factory=_utc_now)
    updated_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "market_id": self.market_id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "stock": self.stock,
            "discount": self.discount,
            "category": self.category,
            "image_url": self.image_url,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class ProductWithFinalPrice(Product):
    """Customer-facing view of a product with its derived discounted price."""

    final_price: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["final_price"] = self.final_price
        return result


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


@dataclass
class OrderItem:
    """A priced order line; snapshots the product at order time."""

    id: str
    order_id: str
    product_id: str
    product_name: str
    quantity: int
    unit_price: float  # base price, not discounted
    discount: float
    subtotal: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "discount": self.discount,
            "subtotal": self.subtotal,
        }


@dataclass
class Order:
    """A customer order against a single market."""

    id: str
    customer_id: str
    market_id: str
    items: list[OrderItem]
    total_amount: float
    status: OrderStatus = OrderStatus.PENDING
    created_at: str = field(default_factory=_utc_now)
    confirmed_at: str | None = None
    cancelled_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "customer_id": self.customer_id,
            "market_id": self.market_id,
            "items": [i.to_dict() for i in self.items],
            "total_amount": self.total_amount,
            "status": self.status.value,
            "created_at": self.created_at,
        }
        if self.confirmed_at is not None:
            result["confirmed_at"] = self.confirmed_at
        if self.cancelled_at is not None:
            result["cancelled_at"] = self.cancelled_at
        return result

    @staticmethod
    def new_id() -> str:
        return f"order-{_generate_id()}"


# Models for order requests


@dataclass(frozen=True)
class OrderItemRequest:
    """A requested (product, quantity) pair."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class CreateOrderInput:
    """Everything needed to place an order."""

    customer_id: str
    market_id: str
    items: list[OrderItemRequest]


# Models for seed users


class UserRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"


@dataclass
class User:
    """A seeded customer or market admin."""

    id: str
    name: str
    email: str
    role: UserRole
    market_id: str | None = None  # admins only
    created_at: str = field(default_factory=_utc_now)
