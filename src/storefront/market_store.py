"""Market storage for storefront."""

from dataclasses import replace

from .errors import MarketNotFoundError, ValidationError
from .models import Market


class MarketStore:
    """Holds the markets known to the process."""

    def __init__(self) -> None:
        self._markets: dict[str, Market] = {}

    def list_markets(self) -> list[Market]:
        return [replace(m) for m in self._markets.values()]

    def exists(self, market_id: str) -> bool:
        return market_id in self._markets

    def get_market(self, market_id: str) -> Market:
        """
        Get a market by ID.

        Raises:
            MarketNotFoundError: If market doesn't exist.
        """
        market = self._markets.get(market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        return replace(market)

    def add_market(self, market: Market) -> Market:
        if market.id in self._markets:
            raise ValidationError(f"Market already exists: {market.id}", field="id")
        self._markets[market.id] = replace(market)
        return replace(market)
