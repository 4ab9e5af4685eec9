"""Per-session shopping cart.

The cart only guards against obviously bad input (non-positive quantities,
more than the stock shown when the product was added). Live stock is checked
again at checkout by order assembly.
"""

from dataclasses import dataclass

from .errors import ValidationError
from .models import CreateOrderInput, Order, OrderItemRequest, ProductWithFinalPrice
from .pricing import line_subtotal, round2
from .service import OrderService


@dataclass
class CartLine:
    product: ProductWithFinalPrice
    quantity: int

    @property
    def subtotal(self) -> float:
        return line_subtotal(self.product.price, self.product.discount, self.quantity)


class CartSession:
    """An in-memory list of (product, quantity) lines for one market."""

    def __init__(self) -> None:
        self.lines: list[CartLine] = []
        self.market_id: str | None = None

    def set_market(self, market_id: str) -> None:
        """Select the market; switching to a different one empties the cart."""
        if self.market_id is not None and self.market_id != market_id:
            self.clear()
        self.market_id = market_id

    def _find(self, product_id: str) -> CartLine | None:
        for line in self.lines:
            if line.product.id == product_id:
                return line
        return None

    def add(self, product: ProductWithFinalPrice, quantity: int = 1) -> None:
        """
        Add a product, merging with an existing line for the same product.

        Raises:
            ValidationError: On a non-positive quantity, a product from another
                market, or a combined quantity above the product's stock.
        """
        if quantity <= 0:
            raise ValidationError("Quantity must be positive", field="quantity")
        if self.market_id is None:
            self.market_id = product.market_id
        elif product.market_id != self.market_id:
            raise ValidationError(
                f"Product {product.id} belongs to {product.market_id}, cart is for {self.market_id}",
                field="market_id",
            )
        if quantity > product.stock:
            raise ValidationError("Requested quantity exceeds available stock", field="quantity")

        line = self._find(product.id)
        if line is None:
            self.lines.append(CartLine(product=product, quantity=quantity))
            return
        self.update_quantity(product.id, line.quantity + quantity)

    def remove(self, product_id: str) -> None:
        self.lines = [line for line in self.lines if line.product.id != product_id]

    def update_quantity(self, product_id: str, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        line = self._find(product_id)
        if line is None:
            return
        if quantity <= 0:
            self.remove(product_id)
            return
        if quantity > line.product.stock:
            raise ValidationError("Total quantity exceeds available stock", field="quantity")
        line.quantity = quantity

    def clear(self) -> None:
        self.lines = []

    def total_amount(self) -> float:
        return round2(sum(line.subtotal for line in self.lines))

    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)

    def to_order_input(self, customer_id: str) -> CreateOrderInput:
        if not self.lines or self.market_id is None:
            raise ValidationError("Cart is empty", field="items")
        return CreateOrderInput(
            customer_id=customer_id,
            market_id=self.market_id,
            items=[OrderItemRequest(line.product.id, line.quantity) for line in self.lines],
        )

    async def checkout(self, orders: OrderService, customer_id: str) -> Order:
        """Place the cart as an order; the cart is kept intact if that fails."""
        order = await orders.create_order(self.to_order_input(customer_id))
        self.clear()
        return order
