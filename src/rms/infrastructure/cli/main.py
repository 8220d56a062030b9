import click

from rms.infrastructure.cli.reservation_commands import (
    reservation_cancel,
    reservation_confirm,
    reservation_create,
    reservation_pay,
    reservation_refresh,
    reservation_show,
)
from rms.infrastructure.cli.stock_commands import shop_add, stock_set, stock_show
from rms.infrastructure.config import get_settings
from rms.infrastructure.logging_config import configure_logging


@click.group()
def cli() -> None:
    """RMS: Reservation Management System"""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)


@cli.group()
def reservation() -> None:
    """Manage reservations."""


@cli.group()
def stock() -> None:
    """Manage stock."""


@cli.group()
def shop() -> None:
    """Manage shops."""


# Register subcommands
reservation.add_command(reservation_cancel)
reservation.add_command(reservation_confirm)
reservation.add_command(reservation_create)
reservation.add_command(reservation_pay)
reservation.add_command(reservation_refresh)
reservation.add_command(reservation_show)
stock.add_command(stock_set)
stock.add_command(stock_show)
shop.add_command(shop_add)
