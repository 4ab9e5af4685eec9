"""In-memory database bundle for storefront.

A ``Database`` is an explicitly constructed object handed to the services
that need it; there is no process-wide instance. Build an empty one for
tests or ``Database.seeded()`` for a populated process.
"""

from dataclasses import replace

from .catalog_store import CatalogStore
from .market_store import MarketStore
from .models import User, UserRole
from .order_store import OrderStore


class UserStore:
    """Holds the seeded customers and market admins."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    def add_user(self, user: User) -> User:
        self._users[user.id] = replace(user)
        return replace(user)

    def admins_for(self, market_id: str) -> list[User]:
        return [
            replace(u)
            for u in self._users.values()
            if u.role is UserRole.ADMIN and u.market_id == market_id
        ]


class Database:
    """Markets, catalog, users and orders for one process (or one test)."""

    def __init__(self) -> None:
        self.markets = MarketStore()
        self.catalog = CatalogStore(self.markets)
        self.users = UserStore()
        self.orders = OrderStore()

    @classmethod
    def seeded(cls) -> "Database":
        """Create a database populated with the demo markets, users and products."""
        from .seed import load_seed

        db = cls()
        load_seed(db)
        return db
