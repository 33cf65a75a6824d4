"""CLI commands for quoting a customer cart."""

from __future__ import annotations

import click

from grocer.application.dto import CartItemSpec
from grocer.application.quote_cart import QuoteCartHandler
from grocer.domain.exceptions import DomainException
from grocer.infrastructure.bootstrap import price_engine, unit_of_work


def _parse_items(raw: str) -> list[CartItemSpec]:
    """Parse '1:0.5:kg,2:3' into a CartItemSpec list (unit optional)."""
    specs: list[CartItemSpec] = []
    for entry in raw.split(","):
        entry = entry.strip()
        parts = [p.strip() for p in entry.split(":")]
        if len(parts) not in (2, 3):
            raise click.BadParameter(
                f"Invalid item format '{entry}'. Expected 'ProductID:Quantity[:Unit]'."
            )
        try:
            product_id = int(parts[0])
        except ValueError:
            raise click.BadParameter(f"Invalid product ID '{parts[0]}'.")
        unit = parts[2] if len(parts) == 3 and parts[2] else None
        specs.append(CartItemSpec(product_id=product_id, quantity=parts[1], unit=unit))
    return specs


@click.command("quote")
@click.option("--items", required=True, help="Items as 'ID:Qty[:Unit],ID:Qty[:Unit]'.")
def cart_quote(items: str) -> None:
    """Price a cart at today's selling prices."""
    specs = _parse_items(items)
    handler = QuoteCartHandler(uow=unit_of_work(), engine=price_engine())

    try:
        quote = handler.handle(specs)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{'Product':<20} {'Qty':>10} {'Price':>10} {'Saved':>10} {'Subtotal':>10}")
    click.echo("-" * 64)
    for line in quote.lines:
        qty = f"{line.quantity} {line.unit}"
        click.echo(
            f"{line.product_name:<20} {qty:>10} {line.effective_price:>10} "
            f"{line.discount_amount:>10} {line.subtotal:>10}"
        )
    click.echo("-" * 64)
    click.echo(f"{'You save':<20} {quote.discount:>43}")
    click.echo(f"{'Total':<20} {quote.total:>43}")
