"""Stock reservation bookkeeping shared by order assembly and cancellation."""

from dataclasses import dataclass, field

import structlog

from .catalog_store import CatalogStore
from .errors import StockConflictError
from .models import Product

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Reservation:
    """A stock decrement that has been applied and may need undoing."""

    product_id: str
    quantity: int


@dataclass
class ReservationArena:
    """Reservations applied so far by one order assembly attempt."""

    reservations: list[Reservation] = field(default_factory=list)

    def record(self, product_id: str, quantity: int) -> None:
        self.reservations.append(Reservation(product_id, quantity))

    def __len__(self) -> int:
        return len(self.reservations)

    def undo(self, catalog: CatalogStore) -> None:
        """Give back every recorded reservation, newest first."""
        for reservation in reversed(self.reservations):
            restore_stock(catalog, reservation.product_id, reservation.quantity)
        self.reservations.clear()


def restore_stock(catalog: CatalogStore, product_id: str, quantity: int) -> Product | None:
    """
    Add ``quantity`` back to a product's live stock.

    The write is a compare-and-swap against the stock just read, retried
    until it lands, so a concurrent reservation is never overwritten.

    Returns:
        The updated Product, or None if the product no longer exists.
    """
    while True:
        product = catalog.get_by_id(product_id)
        if product is None:
            logger.warning("restore_skipped", product_id=product_id, quantity=quantity)
            return None
        try:
            return catalog.update_stock(
                product_id, product.stock + quantity, expected_stock=product.stock
            )
        except StockConflictError:
            continue
