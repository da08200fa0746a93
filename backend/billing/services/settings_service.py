# Overview: Settings key-value store; seeds defaults and validates numbering keys.

from __future__ import annotations

import logging
from typing import Mapping

from ..extensions import db
from ..models import Setting
from ..validation import ValidationError, parse_positive_int


logger = logging.getLogger(__name__)

KEY_INVOICE_PREFIX = "invoice_prefix"
KEY_INVOICE_COUNTER = "invoice_counter"

DEFAULT_INVOICE_PREFIX = "GKS"
DEFAULT_INVOICE_COUNTER = 1

DEFAULT_SETTINGS: dict[str, str] = {
    "store_name": "Gajraj Kirana Stores",
    "store_address": "",
    "store_phone": "",
    "store_email": "",
    "store_gstin": "",
    "gmail_user": "",
    "gmail_app_password": "",
    "low_stock_email": "",
    KEY_INVOICE_PREFIX: DEFAULT_INVOICE_PREFIX,
    KEY_INVOICE_COUNTER: str(DEFAULT_INVOICE_COUNTER),
}


class SettingsRepository:
    """
    Settings access for the invoice engine and the settings API.

    Writes are staged on the session; the caller owns the transaction
    (the invoice engine bumps the counter inside its own unit of work).
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def get(self, key: str, default: str | None = None) -> str | None:
        row = self.session.get(Setting, key)
        if row is None:
            return default
        return row.value

    def set(self, key: str, value) -> None:
        row = self.session.get(Setting, key)
        if row is None:
            self.session.add(Setting(key=key, value=str(value)))
        else:
            row.value = str(value)
        self.session.flush()

    def seed_defaults(self) -> int:
        """Insert any missing default keys; existing values are kept."""
        existing = {k for (k,) in self.session.query(Setting.key).all()}
        to_add = [(k, v) for k, v in DEFAULT_SETTINGS.items() if k not in existing]
        for key, value in to_add:
            self.session.add(Setting(key=key, value=value))
        if to_add:
            self.session.flush()
        return len(to_add)

    def all(self) -> dict[str, str]:
        self.seed_defaults()
        rows = self.session.query(Setting).order_by(Setting.key.asc()).all()
        return {r.key: r.value for r in rows}

    def update(self, values: Mapping) -> dict[str, str]:
        """
        Upsert many keys at once. Values are stored as strings.

        invoice_counter must stay a positive integer: the allocator formats it
        into every new invoice number.
        """
        if not isinstance(values, Mapping):
            raise ValidationError("Settings payload must be an object")
        cleaned: dict[str, str] = {}
        for key, value in values.items():
            if not isinstance(key, str) or not key.strip():
                raise ValidationError("Setting keys must be non-empty strings")
            if value is None:
                value = ""
            if key == KEY_INVOICE_COUNTER:
                value = parse_positive_int(KEY_INVOICE_COUNTER, value)
            cleaned[key.strip()] = str(value)

        for key, value in cleaned.items():
            self.set(key, value)
        logger.info("Updated settings: %s", ", ".join(sorted(cleaned)) or "(none)")
        return cleaned


def get_settings() -> dict[str, str]:
    repo = SettingsRepository()
    settings = repo.all()
    db.session.commit()
    return settings


def update_settings(values: Mapping) -> dict[str, str]:
    repo = SettingsRepository()
    try:
        repo.update(values)
        settings = repo.all()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return settings
