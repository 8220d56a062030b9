"""CLI commands for stock and shop management."""

from __future__ import annotations

import click

from rms.application.set_stock import SetStockHandler
from rms.application.show_stock import ShowStockHandler
from rms.domain.exceptions import DomainException
from rms.infrastructure.bootstrap import unit_of_work


@click.command("set")
@click.option("--item", "item_id", required=True, help="Item ID.")
@click.option("--name", required=True, help="Item name.")
@click.option("--shop", required=True, help="Shop ID.")
@click.option("--quantity", required=True, type=int, help="Quantity at the shop.")
@click.option("--global-quantity", type=int, default=None, help="Quantity across all shops.")
def stock_set(
    item_id: str, name: str, shop: str, quantity: int, global_quantity: int | None
) -> None:
    """Set stock level for an item at a shop."""
    handler = SetStockHandler(unit_of_work)

    try:
        unit = handler.handle(item_id, name, shop, quantity, global_quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Stock for '{unit.item_name}' at {unit.shop_id} set to {unit.shop_quantity} "
        f"(global {unit.global_quantity})"
    )


@click.command("show")
@click.option("--shop", default=None, help="Only show this shop.")
def stock_show(shop: str | None) -> None:
    """Show current stock levels."""
    lines = ShowStockHandler(unit_of_work).handle(shop_id=shop)

    if not lines:
        click.echo("No stock records found.")
        return

    click.echo(f"{'Item':<20} {'Shop':<10} {'Shop qty':>9} {'Global':>8} {'Available':>10}")
    click.echo("-" * 61)
    for line in lines:
        click.echo(
            f"{line.item_name:<20} {line.shop_id:<10} {line.shop_quantity:>9} "
            f"{line.global_quantity:>8} {line.available:>10}"
        )


@click.command("add")
@click.option("--id", "shop_id", required=True, help="Shop ID.")
@click.option("--name", required=True, help="Shop display name.")
def shop_add(shop_id: str, name: str) -> None:
    """Register a shop (or rename it)."""
    with unit_of_work() as uow:
        try:
            uow.shops.save(shop_id, name)
            uow.commit()
        except DomainException as exc:
            raise click.ClickException(str(exc))

    click.echo(f"Shop '{shop_id}' saved as '{name}'")
