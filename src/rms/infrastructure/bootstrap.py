"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache

from rms.application.notifications import StockAlertNotifier
from rms.infrastructure.config import get_settings
from rms.infrastructure.notifiers import (
    FanOutNotifier,
    JsonOutboxNotifier,
    LoggingStockAlertNotifier,
)
from rms.infrastructure.persistence.json_store import JsonStore, JsonUnitOfWork


@lru_cache()
def store() -> JsonStore:
    settings = get_settings()
    return JsonStore(settings.store_path, lock_timeout=settings.lock_timeout)


def unit_of_work() -> JsonUnitOfWork:
    return store().unit_of_work()


def stock_alert_notifier() -> StockAlertNotifier:
    settings = get_settings()
    channels: list[StockAlertNotifier] = [LoggingStockAlertNotifier()]
    if settings.notify_outbox:
        channels.append(
            JsonOutboxNotifier(settings.outbox_path, lock_timeout=settings.lock_timeout)
        )
    return FanOutNotifier(channels)
