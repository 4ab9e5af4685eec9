"""Custom exceptions for storefront."""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    pass


class NotFoundError(StorefrontError):
    """Raised when a referenced record doesn't exist."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class ProductNotFoundError(NotFoundError):
    """Raised when a product ID doesn't exist."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__("Product", product_id)


class OrderNotFoundError(NotFoundError):
    """Raised when an order ID doesn't exist."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__("Order", order_id)


class MarketNotFoundError(NotFoundError):
    """Raised when a market ID doesn't exist."""

    def __init__(self, market_id: str):
        self.market_id = market_id
        super().__init__("Market", market_id)


class ValidationError(StorefrontError):
    """Raised for malformed input (negative price, bad discount, cross-market item...)."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class InsufficientStockError(StorefrontError):
    """Raised when a requested quantity exceeds the live stock."""

    def __init__(self, product_id: str, product_name: str, requested: int, available: int):
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product_name}: requested {requested}, available {available}"
        )


class InvalidStateError(StorefrontError):
    """Raised when a lifecycle transition is attempted from a non-eligible status."""

    def __init__(self, order_id: str, status: str, action: str):
        self.order_id = order_id
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} order {order_id}: status is {status}, expected PENDING"
        )


class StockConflictError(StorefrontError):
    """Raised when a stock compare-and-swap sees a value other than the expected one."""

    def __init__(self, product_id: str, expected: int, actual: int):
        self.product_id = product_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Stock for {product_id} changed concurrently (expected {expected}, found {actual})"
        )


class OrderTimeoutError(StorefrontError):
    """Raised when order assembly runs past its deadline."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Order creation exceeded {timeout:g}s and was rolled back")


class ConfigError(StorefrontError):
    """Raised when an environment setting has an invalid value."""

    def __init__(self, name: str, value: str, reason: str):
        self.name = name
        self.value = value
        super().__init__(f"Invalid value for {name}: {value!r} ({reason})")
