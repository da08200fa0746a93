# Overview: Invoice number allocation from the persisted prefix + counter pair.

from __future__ import annotations

import logging

from .settings_service import (
    SettingsRepository,
    KEY_INVOICE_PREFIX,
    KEY_INVOICE_COUNTER,
    DEFAULT_INVOICE_PREFIX,
    DEFAULT_INVOICE_COUNTER,
)


logger = logging.getLogger(__name__)

COUNTER_PAD = 5


def format_invoice_number(prefix: str, counter: int) -> str:
    return f"{prefix}-{counter:0{COUNTER_PAD}d}"


def _read_counter(raw: str | None) -> int:
    if raw is None or not str(raw).strip():
        return DEFAULT_INVOICE_COUNTER
    try:
        counter = int(str(raw).strip())
    except ValueError:
        logger.warning("invoice_counter %r is not an integer; using %s", raw, DEFAULT_INVOICE_COUNTER)
        return DEFAULT_INVOICE_COUNTER
    if counter <= 0:
        logger.warning("invoice_counter %r is not positive; using %s", raw, DEFAULT_INVOICE_COUNTER)
        return DEFAULT_INVOICE_COUNTER
    return counter


def allocate_invoice_number(settings: SettingsRepository | None = None) -> tuple[str, int]:
    """
    Reserve the next invoice number without persisting the increment.

    Returns (number, counter_snapshot). The caller writes counter_snapshot + 1
    through commit_invoice_counter() inside the same transaction as the
    invoice insert, so a failed creation never burns a number.

    Missing settings fall back to prefix "GKS" and counter 1.
    """
    settings = settings or SettingsRepository()
    prefix = (settings.get(KEY_INVOICE_PREFIX) or "").strip() or DEFAULT_INVOICE_PREFIX
    counter = _read_counter(settings.get(KEY_INVOICE_COUNTER))
    return format_invoice_number(prefix, counter), counter


def commit_invoice_counter(counter_snapshot: int, settings: SettingsRepository | None = None) -> int:
    """Advance the stored counter past counter_snapshot. Never rolled back by deletions."""
    settings = settings or SettingsRepository()
    next_counter = counter_snapshot + 1
    settings.set(KEY_INVOICE_COUNTER, str(next_counter))
    return next_counter
