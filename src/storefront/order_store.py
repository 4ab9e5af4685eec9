"""Order storage for storefront.

Orders are append-only: once created they can only have their status
fields changed, and they are never deleted.
"""

import copy
import threading
from typing import Any

from .errors import InvalidStateError, ValidationError
from .models import Order, OrderStatus

# The only fields update() may change
MUTABLE_FIELDS = frozenset({"status", "confirmed_at", "cancelled_at"})


class OrderStore:
    """Holds created orders in creation order."""

    def __init__(self) -> None:
        self._orders: dict[str, Order] = {}
        self._mutex = threading.Lock()

    def create(self, order: Order) -> Order:
        with self._mutex:
            if order.id in self._orders:
                raise ValidationError(f"Order already exists: {order.id}", field="id")
            self._orders[order.id] = copy.deepcopy(order)
        return copy.deepcopy(order)

    def get_by_id(self, order_id: str) -> Order | None:
        with self._mutex:
            order = self._orders.get(order_id)
            return copy.deepcopy(order) if order is not None else None

    def get_by_market(self, market_id: str) -> list[Order]:
        with self._mutex:
            return [copy.deepcopy(o) for o in self._orders.values() if o.market_id == market_id]

    def get_by_customer(self, customer_id: str) -> list[Order]:
        with self._mutex:
            return [
                copy.deepcopy(o) for o in self._orders.values() if o.customer_id == customer_id
            ]

    def list_orders(self) -> list[Order]:
        with self._mutex:
            return [copy.deepcopy(o) for o in self._orders.values()]

    def update(self, order_id: str, **fields: Any) -> Order | None:
        """
        Change status fields of an order.

        Returns:
            The updated Order, or None if the order doesn't exist.

        Raises:
            ValidationError: If a field other than the status fields is given.
        """
        self._check_fields(fields)
        with self._mutex:
            order = self._orders.get(order_id)
            if order is None:
                return None
            return self._apply(order, fields)

    def transition(
        self,
        order_id: str,
        expected_status: OrderStatus,
        action: str,
        **fields: Any,
    ) -> Order | None:
        """
        Change status fields only if the order is still in ``expected_status``.

        The status check and the write happen under one lock, so two callers
        racing on the same order cannot both succeed.

        Returns:
            The updated Order, or None if the order doesn't exist.

        Raises:
            InvalidStateError: If the order's status isn't ``expected_status``.
        """
        self._check_fields(fields)
        with self._mutex:
            order = self._orders.get(order_id)
            if order is None:
                return None
            if order.status is not expected_status:
                raise InvalidStateError(order_id, order.status.value, action)
            return self._apply(order, fields)

    @staticmethod
    def _check_fields(fields: dict[str, Any]) -> None:
        disallowed = set(fields) - MUTABLE_FIELDS
        if disallowed:
            raise ValidationError(
                f"Orders are append-only; cannot change {', '.join(sorted(disallowed))}",
                field=sorted(disallowed)[0],
            )

    @staticmethod
    def _apply(order: Order, fields: dict[str, Any]) -> Order:
        for name, value in fields.items():
            setattr(order, name, value)
        return copy.deepcopy(order)
