from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .numbers import to_decimal


# Upper bound for any money or quantity field (keeps Numeric(14, x) columns safe)
MAX_AMOUNT = Decimal("999999999.99")


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level missing resource."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - non_negative_fields: numeric fields that must be >= 0
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    non_negative_fields: set[str] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def parse_decimal(name: str, value: Any, *, places: Decimal | None = None) -> Decimal:
    """
    Strict number parsing for money/quantity input.

    Accepts ints, floats and numeric strings; rejects booleans, blanks,
    NaN/Infinity and values above MAX_AMOUNT.
    """
    try:
        dec = to_decimal(value)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{name} must be a number")
    if not dec.is_finite():
        raise ValidationError(f"{name} must be a finite number")
    if abs(dec) > MAX_AMOUNT:
        raise ValidationError(f"{name} exceeds maximum {MAX_AMOUNT}")
    if places is not None:
        dec = dec.quantize(places)
    return dec


def parse_positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
    else:
        raise ValidationError(f"{name} must be an integer")
    if parsed <= 0:
        raise ValidationError(f"{name} must be > 0")
    return parsed


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or "e" in stripped.lower() or "." in stripped:
                raise ValidationError(f"{col.key} must be a plain integer")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        raise ValidationError(f"{col.key} must be an integer")

    # Fixed-point (money, quantities): honour the column scale
    if isinstance(coltype, Numeric):
        places = Decimal(1).scaleb(-coltype.scale) if coltype.scale else None
        return parse_decimal(col.key, value, places=places)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Unknown keys are ignored so forms can post whole records back. Explicit
    nulls are accepted only for nullable columns.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    non_negative = policy.non_negative_fields or set()

    patch: dict = {}

    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            continue
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for required text fields
        if k in required and isinstance(val, str) and val == "":
            raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        if k in non_negative and isinstance(val, Decimal) and val < 0:
            raise ValidationError(f"{k} must be >= 0")

        patch[k] = val

    return patch
