"""Price derivation shared by catalog views, carts and order assembly."""

from dataclasses import asdict
from decimal import ROUND_HALF_UP, Decimal

from .models import Product, ProductWithFinalPrice

CENT = Decimal("0.01")


def round2(value: float | Decimal) -> float:
    """Round to cents, half-up (2.675 -> 2.68, unlike round())."""
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def _discounted(price: float, discount: float) -> Decimal:
    return Decimal(str(price)) * (1 - Decimal(str(discount)) / 100)


def final_price(price: float, discount: float) -> float:
    """Return ``price`` with a percentage ``discount`` applied, rounded to cents."""
    return round2(_discounted(price, discount))


def line_subtotal(unit_price: float, discount: float, quantity: int) -> float:
    """
    Price an order line.

    The discounted unit price is multiplied out unrounded and the line is
    rounded once, so ``24.90`` at 33% off times 2 is ``33.37``, not
    ``2 * 16.68``.
    """
    return round2(_discounted(unit_price, discount) * quantity)


def with_final_price(product: Product) -> ProductWithFinalPrice:
    """Attach the derived final price to a product at the read boundary."""
    data = asdict(product)
    data.pop("final_price", None)
    return ProductWithFinalPrice(**data, final_price=final_price(product.price, product.discount))
