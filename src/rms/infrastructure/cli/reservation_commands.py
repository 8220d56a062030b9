"""CLI commands for the Reservation aggregate."""

from __future__ import annotations

import click

from rms.application.cancel_reservation import CancelReservationHandler
from rms.application.confirm_reservation import ConfirmReservationHandler
from rms.application.create_reservation import CreateReservationHandler
from rms.application.dto import ReservationDTO, ReservationLineSpec
from rms.application.record_payment import RecordPaymentHandler
from rms.application.refresh_stock_status import RefreshStockStatusHandler
from rms.application.show_reservation import ShowReservationHandler
from rms.domain.exceptions import DomainException, InsufficientStockError
from rms.infrastructure.bootstrap import stock_alert_notifier, unit_of_work

actor_option = click.option(
    "--actor", required=True, envvar="RMS_ACTOR", help="User performing the action."
)


def _parse_lines(raw: str) -> list[ReservationLineSpec]:
    """Parse 'ITEM:QTY[:DEPOSIT],...' into ReservationLineSpec list."""
    specs: list[ReservationLineSpec] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        parts = chunk.split(":")
        if len(parts) not in (2, 3) or not parts[0].strip():
            raise click.BadParameter(
                f"Invalid line format '{chunk}'. Expected 'ItemId:Quantity[:Deposit]'."
            )
        try:
            numbers = [int(p) for p in parts[1:]]
        except ValueError:
            raise click.BadParameter(f"Invalid number in line '{chunk}'.")
        specs.append(ReservationLineSpec(parts[0].strip(), *numbers))
    return specs


def _display_reservation(dto: ReservationDTO) -> None:
    """Shared formatting for displaying a reservation."""
    click.echo(f"Reservation #{dto.id}  (status={dto.status}, {dto.status_label})")
    click.echo(f"Client:   {dto.client_id}")
    click.echo(f"Shop:     {dto.shop_id}")
    click.echo(f"Pickup:   {dto.pickup_date}")
    click.echo(f"Created:  {dto.created_at} by {dto.created_by}")
    if dto.confirmed_at:
        click.echo(f"Confirmed: {dto.confirmed_at} by {dto.confirmed_by}")
    if dto.cancelled_at:
        reason = f" ({dto.cancellation_reason})" if dto.cancellation_reason else ""
        click.echo(f"Cancelled: {dto.cancelled_at} by {dto.cancelled_by}{reason}")
    click.echo()
    click.echo(f"  {'Item':<24} {'Qty':>5} {'Deposit':>10}")
    click.echo(f"  {'-'*41}")
    for item in dto.items:
        click.echo(f"  {item.item_name:<24} {item.quantity:>5} {item.deposit_allocation:>10}")
    click.echo(f"  {'-'*41}")
    click.echo(f"  {'Total':<30} {dto.total:>10} {dto.currency}")
    click.echo(f"  {'Deposit':<30} {dto.deposit:>10} {dto.currency}")
    click.echo(f"  {'Remaining':<30} {dto.remaining:>10} {dto.currency}")

    if dto.history:
        click.echo()
        click.echo("History:")
        for entry in dto.history:
            reason = f"  {entry.reason}" if entry.reason else ""
            click.echo(
                f"  {entry.changed_at}  {entry.old_status} -> {entry.new_status}"
                f"  by {entry.changed_by}{reason}"
            )


@click.command("create")
@click.option("--client", required=True, help="Client ID.")
@click.option("--shop", required=True, help="Shop ID.")
@click.option("--items", required=True, help="Lines as 'ItemId:Qty[:Deposit],...'.")
@click.option("--pickup", required=True, type=click.DateTime(["%Y-%m-%d"]), help="Pickup date.")
@click.option("--total", required=True, type=int, help="Total amount (minor units).")
@click.option("--deposit", required=True, type=int, help="Deposit paid now.")
@click.option("--remaining", required=True, type=int, help="Amount left to pay.")
@actor_option
def reservation_create(
    client: str,
    shop: str,
    items: str,
    pickup,
    total: int,
    deposit: int,
    remaining: int,
    actor: str,
) -> None:
    """Create a reservation (never refused for lack of stock)."""
    specs = _parse_lines(items)
    handler = CreateReservationHandler(unit_of_work, notifier=stock_alert_notifier())

    try:
        result = handler.handle(
            client_id=client,
            shop_id=shop,
            line_specs=specs,
            pickup_date=pickup.date(),
            total=total,
            deposit=deposit,
            remaining=remaining,
            actor=actor,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_reservation(result.reservation)
    if result.has_stock_issue:
        click.echo()
        click.echo("Warning: some items are short of stock, shop administrators were alerted.")
        for deficit in result.deficits:
            click.echo(f"  {deficit.item_name}: {deficit.description}")


@click.command("show")
@click.option("--id", "reservation_id", required=True, type=int, help="Reservation ID.")
def reservation_show(reservation_id: int) -> None:
    """Show a reservation and its status history."""
    handler = ShowReservationHandler(unit_of_work)

    try:
        dto = handler.handle(reservation_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_reservation(dto)


@click.command("confirm")
@click.option("--id", "reservation_id", required=True, type=int, help="Reservation ID.")
@click.option("--note", default=None, help="Optional note for the history.")
@actor_option
def reservation_confirm(reservation_id: int, note: str | None, actor: str) -> None:
    """Confirm a reservation (deducts stock)."""
    handler = ConfirmReservationHandler(unit_of_work)

    try:
        result = handler.handle(reservation_id, actor=actor, note=note)
    except InsufficientStockError as exc:
        lines = "; ".join(
            f"{name}: requested {requested}, available {available}"
            for name, requested, available in exc.shortages
        )
        raise click.ClickException(
            f"{exc} ({lines}). Restock the items or cancel the reservation."
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Reservation #{reservation_id} confirmed, stock deducted.")
    for d in result.deductions:
        click.echo(
            f"  {d.item_name:<24} -{d.quantity:<4} shop {d.old_shop_quantity}->{d.new_shop_quantity}"
            f"  global {d.old_global_quantity}->{d.new_global_quantity}"
        )


@click.command("cancel")
@click.option("--id", "reservation_id", required=True, type=int, help="Reservation ID.")
@click.option("--reason", default=None, help="Why the reservation is cancelled.")
@actor_option
def reservation_cancel(reservation_id: int, reason: str | None, actor: str) -> None:
    """Cancel a pending reservation (stock is untouched)."""
    handler = CancelReservationHandler(unit_of_work)

    try:
        handler.handle(reservation_id, actor=actor, reason=reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Reservation #{reservation_id} cancelled.")


@click.command("refresh")
@click.option("--id", "reservation_id", required=True, type=int, help="Reservation ID.")
@actor_option
def reservation_refresh(reservation_id: int, actor: str) -> None:
    """Re-check stock for a reservation waiting on stock."""
    handler = RefreshStockStatusHandler(unit_of_work)

    try:
        result = handler.handle(reservation_id, actor=actor)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if result.became_ready:
        click.echo(f"Reservation #{reservation_id} is now {result.reservation.status}.")
        return
    click.echo(f"Reservation #{reservation_id} is still waiting on stock:")
    for deficit in result.remaining_deficits:
        click.echo(f"  {deficit.item_name}: {deficit.description}")


@click.command("pay")
@click.option("--id", "reservation_id", required=True, type=int, help="Reservation ID.")
@click.option("--amount", required=True, type=int, help="Amount paid (minor units).")
@actor_option
def reservation_pay(reservation_id: int, amount: int, actor: str) -> None:
    """Record an additional payment against a pending reservation."""
    handler = RecordPaymentHandler(unit_of_work)

    try:
        dto = handler.handle(reservation_id, amount=amount, actor=actor)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Payment of {amount} recorded on reservation #{reservation_id} "
        f"(remaining {dto.remaining} {dto.currency})."
    )
