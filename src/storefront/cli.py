"""Command-line interface for storefront."""

import argparse
import json
import sys

from . import __version__
from .config import load_settings
from .database import Database
from .errors import StorefrontError
from .logging_config import configure_logging
from .models import ProductWithFinalPrice
from .service import ProductService


def get_database() -> Database:
    """Build the catalog CLI commands read; seeded unless STOREFRONT_SEED=0."""
    return Database.seeded() if load_settings().seed else Database()


def format_product(product: ProductWithFinalPrice) -> str:
    """One-line summary of a product for terminal output."""
    price = f"${product.final_price:.2f}"
    if product.discount:
        price = f"{price} (was ${product.price:.2f}, -{product.discount:g}%)"
    return f"  {product.id}: {product.name} [{product.category}] {price} stock={product.stock}"


def cmd_markets(args: argparse.Namespace) -> int:
    """List markets."""
    markets = get_database().markets.list_markets()

    if args.json:
        print(json.dumps([m.to_dict() for m in markets], indent=2))
        return 0

    if not markets:
        print("No markets.")
        return 0

    for market in markets:
        print(f"{market.id}: {market.name}")
        if market.description:
            print(f"  {market.description}")
    return 0


def cmd_products(args: argparse.Namespace) -> int:
    """List or search a market's products."""
    try:
        db = get_database()
        market = db.markets.get_market(args.market_id)
        service = ProductService(db)
        if args.query:
            products = service.search(market.id, args.query)
        else:
            products = service.get_products_by_market(market.id)

        if args.json:
            print(json.dumps([p.to_dict() for p in products], indent=2))
            return 0

        if not products:
            print("No products found.")
            return 0

        print(f"{market.name} ({len(products)} product(s)):")
        for product in products:
            print(format_product(product))
        return 0

    except StorefrontError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    try:
        import uvicorn

        print("Starting storefront API server...")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        # When reload is enabled, uvicorn requires the app as an import string
        app_target = "storefront.api:app" if args.reload else None
        if app_target is None:
            from .api import app
            app_target = app

        uvicorn.run(
            app_target,
            host=args.host,
            port=args.port,
            reload=args.reload,
            workers=1,  # The database lives in this process's memory
        )
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="storefront",
        description="Browse markets and catalogs, and serve the storefront API.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # markets
    markets_parser = subparsers.add_parser("markets", help="List markets")
    markets_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # products
    products_parser = subparsers.add_parser("products", help="List a market's products")
    products_parser.add_argument("market_id", help="Market ID")
    products_parser.add_argument("--query", "-q", help="Filter by name or category")
    products_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        settings = load_settings()
    except StorefrontError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    configure_logging(settings.log_level)

    commands = {
        "markets": cmd_markets,
        "products": cmd_products,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
