"""CLI commands for the product catalog."""

from __future__ import annotations

import click

from grocer.application.add_product import AddProductHandler
from grocer.application.dto import CartItemSpec
from grocer.application.list_products import ListProductsHandler
from grocer.application.quote_cart import QuoteCartHandler
from grocer.domain.exceptions import DomainException
from grocer.infrastructure.bootstrap import (
    discount_resolver,
    price_engine,
    unit_converter,
    unit_of_work,
)


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Regular price per stock unit (e.g. 15.00).")
@click.option("--stock", default="0", show_default=True, help="Stock quantity.")
@click.option("--unit", required=True, help="Stock unit (kg, g, l, ml, pcs, ...).")
def product_add(name: str, price: str, stock: str, unit: str) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(uow=unit_of_work(), converter=unit_converter())

    try:
        product = handler.handle(name=name, price=price, stock_quantity=stock, stock_unit=unit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Product #{product.id} '{product.name}' added at "
        f"{product.regular_price} per {product.stock_unit}"
    )


@click.command("list")
@click.option("--search", default=None, help="Filter by (part of) the product name.")
def product_list(search: str | None) -> None:
    """List active products with their current selling prices."""
    handler = ListProductsHandler(
        uow=unit_of_work(), engine=price_engine(), resolver=discount_resolver()
    )
    products = handler.handle(search=search)

    if not products:
        click.echo("No products found.")
        return

    click.echo(
        f"{'ID':<6} {'Name':<20} {'Regular':>10} {'Selling':>10} "
        f"{'Discount':<16} {'Stock':>12}"
    )
    click.echo("-" * 79)
    for p in products:
        if p.has_discount:
            discount = f"{p.discount_type} {p.discount_value}"
        else:
            discount = "-"
        stock = f"{p.stock_quantity} {p.stock_unit}"
        click.echo(
            f"{p.id:<6} {p.name:<20} {p.regular_price:>10} {p.selling_price:>10} "
            f"{discount:<16} {stock:>12}"
        )


@click.command("breakdown")
@click.option("--id", "product_id", required=True, type=int, help="Product ID.")
@click.option("--quantity", required=True, help="Quantity (e.g. 0.5).")
@click.option("--unit", default=None, help="Unit of the quantity (default: stock unit).")
def product_breakdown(product_id: int, quantity: str, unit: str | None) -> None:
    """Show how the price of a quantity of one product is made up."""
    handler = QuoteCartHandler(uow=unit_of_work(), engine=price_engine())

    try:
        quote = handler.handle([CartItemSpec(product_id, quantity, unit)])
    except DomainException as exc:
        raise click.ClickException(str(exc))

    line = quote.lines[0]
    click.echo(f"{line.product_name}: {line.quantity} {line.unit}")
    click.echo(f"  Regular price:     {line.regular_price}")
    click.echo(f"  Effective price:   {line.effective_price}")
    if line.has_discount:
        click.echo(f"  Discount:          {line.discount_percentage}%")
    click.echo(f"  Regular subtotal:  {line.regular_subtotal}")
    click.echo(f"  You save:          {line.discount_amount}")
    click.echo(f"  Subtotal:          {line.subtotal}")
