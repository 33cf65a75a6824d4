import click

from grocer.infrastructure.bootstrap import get_settings, init_database
from grocer.infrastructure.cli.cart_commands import cart_quote
from grocer.infrastructure.cli.price_commands import (
    price_bulk_update,
    price_count,
    price_history,
    price_range,
    price_recent,
)
from grocer.infrastructure.cli.product_commands import (
    product_add,
    product_breakdown,
    product_list,
)
from grocer.infrastructure.config import configure_logging


@click.group()
def cli() -> None:
    """Grocer — pricing and price audit for a grocery store"""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)


@cli.group()
def db() -> None:
    """Manage the database."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def price() -> None:
    """Update prices and inspect the price history."""


@cli.group()
def cart() -> None:
    """Quote customer carts."""


@db.command("init")
def db_init() -> None:
    """Create the database tables."""
    init_database()
    click.echo("Database initialised.")


# Register subcommands
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_breakdown)
price.add_command(price_bulk_update)
price.add_command(price_history)
price.add_command(price_recent)
price.add_command(price_range)
price.add_command(price_count)
cart.add_command(cart_quote)
