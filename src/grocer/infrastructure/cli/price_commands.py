"""CLI commands for price maintenance and the price audit history."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import click

from grocer.application.bulk_update_prices import BulkUpdatePricesHandler
from grocer.application.dto import BulkUpdateResult, PriceUpdateDTO
from grocer.application.show_price_history import ShowPriceHistoryHandler
from grocer.domain.exceptions import DomainException
from grocer.infrastructure.bootstrap import (
    discount_resolver,
    get_settings,
    price_engine,
    unit_of_work,
)


def _load_updates(path: Path) -> list[dict]:
    """Read a batch file: a JSON list, or an object with an 'updates' list."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"'{path}' is not valid JSON: {exc}")

    if isinstance(data, dict):
        data = data.get("updates")
    if not isinstance(data, list):
        raise click.BadParameter(f"'{path}' must hold a list of updates.")
    return data


def _history_handler() -> ShowPriceHistoryHandler:
    return ShowPriceHistoryHandler(uow=unit_of_work(), tz=get_settings().tz)


def _echo_history(records: list[PriceUpdateDTO]) -> None:
    if not records:
        click.echo("No price updates found.")
        return

    click.echo(
        f"{'When':<20} {'Product':<20} {'Regular':>17} {'Selling':>17} "
        f"{'Change':>8} {'Discount':<22} {'By':>5}"
    )
    click.echo("-" * 115)
    for r in records:
        regular = f"{r.old_regular_price} -> {r.new_regular_price}"
        selling = f"{r.old_selling_price} -> {r.new_selling_price}"
        change = f"{r.price_change_percentage}%" if r.price_change_percentage else "-"
        discount = f"{r.old_discount_type} -> {r.new_discount_type}"
        name = r.product_name or f"#{r.product_id}"
        click.echo(
            f"{r.created_at:<20} {name:<20} {regular:>17} {selling:>17} "
            f"{change:>8} {discount:<22} {r.updated_by or '-':>5}"
        )


def _echo_result(result: BulkUpdateResult) -> None:
    for item in result.results:
        if item.updated:
            changed = [
                name
                for name, flag in (
                    ("price", item.changes.price),
                    ("stock", item.changes.stock),
                    ("discount", item.changes.discount),
                )
                if flag
            ]
            click.echo(f"  #{item.product_id} {item.product_name}: updated ({', '.join(changed)})")
        else:
            click.echo(f"  #{item.product_id} {item.product_name}: no changes")
    for error in result.errors:
        click.echo(f"  item {error.index} (product {error.product_id}): {error.error}")
    click.echo(f"{result.updated} processed, {len(result.errors)} failed")


@click.command("bulk-update")
@click.option(
    "--file",
    "file_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with the list of updates.",
)
@click.option("--user", "user_id", required=True, type=int, help="ID of the acting user.")
@click.option("--json", "as_json", is_flag=True, help="Print the raw result as JSON.")
def price_bulk_update(file_path: Path, user_id: int, as_json: bool) -> None:
    """Apply a batch of price, stock and discount changes atomically."""
    updates = _load_updates(file_path)
    handler = BulkUpdatePricesHandler(
        uow=unit_of_work(), engine=price_engine(), resolver=discount_resolver()
    )
    result = handler.handle(updates, user_id=user_id)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _echo_result(result)

    if not result.success:
        raise click.ClickException(result.error or "Bulk price update failed")


@click.command("history")
@click.option("--product", "product_id", required=True, type=int, help="Product ID.")
@click.option("--limit", type=int, default=None, help="Maximum rows (1-100).")
def price_history(product_id: int, limit: int | None) -> None:
    """Show the price history of one product, newest first."""
    try:
        records = _history_handler().for_product(
            product_id, limit or get_settings().history_limit
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _echo_history(records)


@click.command("recent")
@click.option("--limit", type=int, default=None, help="Maximum rows (1-100).")
def price_recent(limit: int | None) -> None:
    """Show the most recent price updates across all products."""
    try:
        records = _history_handler().recent(limit or get_settings().recent_limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _echo_history(records)


@click.command("range")
@click.option("--start", required=True, type=click.DateTime(formats=["%Y-%m-%d"]))
@click.option("--end", required=True, type=click.DateTime(formats=["%Y-%m-%d"]))
def price_range(start: datetime, end: datetime) -> None:
    """Show price updates made between two dates (inclusive, store time)."""
    try:
        records = _history_handler().between(start.date(), end.date())
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _echo_history(records)


@click.command("count")
@click.option(
    "--since",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="First day to count (store time). Defaults to today.",
)
def price_count(since: datetime | None) -> None:
    """Count price updates made since a day, today by default."""
    count = _history_handler().count_since(since.date() if since else None)
    click.echo(f"{count} price update(s)")
