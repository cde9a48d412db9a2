"""
CLI entry point for geoprice.

Lets an administrator check what a visitor from a given country (or IP
address) would be shown, without going through the web app.
"""

import argparse
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path

from geoprice.geo.country_resolver import CountryResolver
from geoprice.geo.geolocation import build_provider
from geoprice.geo.models import CountrySelection, VisitorContext
from geoprice.pricing.pricing_engine import PricingEngine, Product
from geoprice.storage.settings_store import configure_store, get_api_key
from geoprice.utils.config_loader import AppConfig, load_config, load_env
from geoprice.utils.logging_config import LogContext, setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed command line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Country-based pricing tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m geoprice.main quote --product 42 --base-price 8 --country CA
    python -m geoprice.main quote --product 42 --base-price 8 --ip 8.8.8.8
    python -m geoprice.main serve
        """,
    )

    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=Path("config/config.yaml"),
        help="Path to configuration file",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    quote = subparsers.add_parser("quote", help="Show the price a visitor would see")
    quote.add_argument("--product", "-p", required=True, help="Product ID")
    quote.add_argument("--base-price", "-b", required=True, help="Catalog base price")
    quote.add_argument("--country", help="Explicit country selection")
    quote.add_argument("--ip", default="", help="Visitor IP address for geolocation")

    serve = subparsers.add_parser("serve", help="Run the web app")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser.parse_args(argv)


def build_cli_engine(config: AppConfig) -> PricingEngine:
    """Pricing engine over the configured settings file."""
    store = configure_store(config.paths.settings_file)
    api_key = get_api_key(config.geolocation.api_key_env)
    return PricingEngine(
        tables=store.get_tables(),
        resolver=CountryResolver(build_provider(config, api_key)),
        store_currency=config.store.default_currency,
        locale=config.store.locale,
    )


def run_quote(args: argparse.Namespace, config: AppConfig) -> int:
    """
    Print the price, currency, CSS and shipping country for one product.

    Returns:
        int: Exit code (0 for success, non-zero for errors).
    """
    try:
        base_price = Decimal(args.base_price)
    except InvalidOperation:
        print(f"\n✗ Error: invalid base price: {args.base_price}")
        return 1

    engine = build_cli_engine(config)

    ctx = VisitorContext(remote_addr=args.ip)
    if args.country:
        ctx.selection = CountrySelection.from_cookie_value(args.country)

    try:
        with LogContext(product_id=args.product, remote_addr=args.ip):
            quote = engine.price_quote(Product(product_id=args.product, base_price=base_price), ctx)
            logger.debug(f"Quote for {args.product}: {quote}")
    finally:
        if engine.resolver.provider is not None:
            engine.resolver.provider.close()

    print("\n" + "=" * 60)
    print("PRICE QUOTE")
    print("=" * 60)
    print(f"  Product:          {quote['product_id']}")
    print(f"  Country:          {quote['country'] or '(unresolved)'}")
    print(f"  Base price:       {quote['base_price']}")
    print(f"  Price:            {quote['price']} {quote['currency']}")
    print(f"  Formatted:        {quote['formatted']}")
    print(f"  Shipping country: {engine.shipping_country(ctx) or '(unchanged)'}")
    print(f"  CSS:              {engine.effective_css(ctx) or '(none)'}")
    print("=" * 60 + "\n")
    return 0


def run_server(args: argparse.Namespace) -> int:
    """Launch the web app with uvicorn."""
    import uvicorn

    uvicorn.run("geoprice.webapp.main:app", host=args.host, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point.

    Returns:
        int: Exit code.
    """
    load_env()
    args = parse_args(argv)

    setup_logging(level="DEBUG" if args.verbose else "WARNING")

    try:
        if args.command == "serve":
            return run_server(args)
        config = load_config(args.config)
        return run_quote(args, config)
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.")
        return 130
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        print(f"\n✗ Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
