"""Order status transitions.

    PENDING --confirm--> CONFIRMED
    PENDING --cancel---> CANCELLED

Both targets are terminal. Cancelling gives the reserved stock back;
confirming leaves stock alone since it was taken when the order was created.
"""

import structlog

from .database import Database
from .errors import OrderNotFoundError
from .inventory import restore_stock
from .models import Order, OrderStatus, _utc_now

logger = structlog.get_logger(__name__)


class OrderLifecycle:
    """Applies confirm/cancel transitions to stored orders."""

    def __init__(self, db: Database):
        self.db = db

    def confirm(self, order_id: str) -> Order:
        """
        Accept a pending order.

        Raises:
            OrderNotFoundError: If the order doesn't exist.
            InvalidStateError: If the order isn't PENDING.
        """
        order = self.db.orders.transition(
            order_id,
            OrderStatus.PENDING,
            "confirm",
            status=OrderStatus.CONFIRMED,
            confirmed_at=_utc_now(),
        )
        if order is None:
            raise OrderNotFoundError(order_id)
        logger.info("order_confirmed", order_id=order_id)
        return order

    def cancel(self, order_id: str) -> Order:
        """
        Cancel a pending order and return its reserved stock.

        The order is moved to CANCELLED before stock is restored, so a second
        cancel racing this one fails instead of restoring twice. Lines whose
        product has since been deleted are skipped.

        Raises:
            OrderNotFoundError: If the order doesn't exist.
            InvalidStateError: If the order isn't PENDING.
        """
        order = self.db.orders.transition(
            order_id,
            OrderStatus.PENDING,
            "cancel",
            status=OrderStatus.CANCELLED,
            cancelled_at=_utc_now(),
        )
        if order is None:
            raise OrderNotFoundError(order_id)

        skipped = 0
        for item in order.items:
            if restore_stock(self.db.catalog, item.product_id, item.quantity) is None:
                skipped += 1

        logger.info("order_cancelled", order_id=order_id, lines=len(order.items), skipped=skipped)
        return order
