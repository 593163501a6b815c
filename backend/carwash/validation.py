# Overview: Payload validation for admin forms; column-driven coercion plus catalog rules.

"""
Admin panels post loosely typed JSON (numbers typed as text, prices with a
decimal comma). validate_payload turns such a body into a clean patch for
one model, driven by the SQLAlchemy column types and a per-model
ModelValidationPolicy. Rules that the columns cannot express live in the
enforce_rules_* functions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String

from carwash.time_utils import parse_iso_datetime


# PostgreSQL INTEGER upper bound
MAX_STOCK = 2_147_483_647

MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 24 * 60


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate DNI)."""


class NotFoundError(LookupError):
    """404-level missing record."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    What a panel may write on a model.

    writable_fields is the allowlist; anything else in the body is
    rejected. required_on_create applies only to create (partial=False).
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


def _to_decimal(key: str, value: Any):
    from carwash.pricing import parse_price

    parsed = parse_price(value)
    if parsed is None:
        raise ValidationError(f"{key} must be a number")
    return parsed


def _to_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be an integer")

    text = value.strip()
    # "1e3", "1.5" and "1,5" are all refused rather than truncated
    if not text or any(ch in text.lower() for ch in ("e", ".", ",")):
        raise ValidationError(f"{key} must be a plain integer")
    try:
        return int(text)
    except ValueError:
        raise ValidationError(f"{key} must be an integer")


def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "1", "si", "sí"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "0", "no", ""):
        return False
    if isinstance(value, int):
        return bool(value)
    raise ValidationError(f"{key} must be true or false")


def _to_datetime(key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        parsed = parse_iso_datetime(value) if isinstance(value, str) else None
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{key} must be an ISO-8601 datetime")
    return parsed


def _to_text(key: str, value: Any) -> str:
    return str(value).strip()


# First match wins; Text is a String subclass
_COERCERS: tuple[tuple[type, Callable[[str, Any], Any]], ...] = (
    (Numeric, _to_decimal),
    (Integer, _to_int),
    (Boolean, _to_bool),
    (DateTime, _to_datetime),
    (String, _to_text),
)


def _coerce(column, value: Any) -> Any:
    for column_type, coercer in _COERCERS:
        if isinstance(column.type, column_type):
            return coercer(column.key, value)
    return value


def _check_text(column, value: Any) -> None:
    if not isinstance(value, str):
        return
    if value == "" and not column.nullable:
        raise ValidationError(f"{column.key} cannot be blank")
    length = getattr(column.type, "length", None)
    if length and len(value) > length:
        raise ValidationError(f"{column.key} exceeds max length {length}")


def validate_payload(*, model, payload: dict, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Clean a JSON body into a patch for `model`.

    partial=False is create: every required_on_create field must be present
    and non-blank. partial=True is update: only the keys sent are checked.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}
    unexpected = [k for k in payload if k not in policy.writable_fields or k not in columns]
    if unexpected:
        raise ValidationError(f"Field not allowed: {unexpected[0]}")

    patch: dict = {}
    for key, raw in payload.items():
        column = columns[key]
        if raw is None:
            if not column.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
            continue

        value = _coerce(column, raw)
        _check_text(column, value)
        patch[key] = value

    return patch


def enforce_rules_catalog_item(patch: dict) -> None:
    """Price, stock and duration bounds shared by products and wash services."""
    from carwash.pricing import validate_price

    if patch.get("price") is not None:
        validate_price(patch["price"])

    stock = patch.get("stock")
    if stock is not None and not 0 <= stock <= MAX_STOCK:
        raise ValidationError(f"stock must be between 0 and {MAX_STOCK}")

    minutes = patch.get("duration_minutes")
    if minutes is not None and not MIN_DURATION_MINUTES <= minutes <= MAX_DURATION_MINUTES:
        raise ValidationError(
            f"duration_minutes must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES}"
        )
