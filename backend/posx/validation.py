from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from posx.money import to_cents
from posx.time_utils import parse_iso_datetime


# Maximum price: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999
MAX_QUANTITY = 1_000_000_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate phone number)."""


class NotFoundError(LookupError):
    """404-level missing entity."""


@dataclass(frozen=True)
class Field:
    """
    One JSON key of a request body.

    kind: "int", "money", "bool", "str", "datetime"
    attr: model attribute the value is written to (money fields end in _cents)
    """
    attr: str
    kind: str = "str"
    nullable: bool = True
    max_length: int | None = None


@dataclass(frozen=True)
class PayloadPolicy:
    """
    Central policy layer:
    - fields: what clients are allowed to send (security boundary)
    - required_on_create: keys required for POST
    - ignore_unknown: drop undeclared keys instead of rejecting them
    """
    fields: dict[str, Field]
    required_on_create: frozenset[str] = field(default_factory=frozenset)
    ignore_unknown: bool = False


def coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Whole floats arrive from JS clients (3.0); anything fractional is rejected
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_money(key: str, value: Any) -> int:
    try:
        cents = to_cents(value)
    except ValueError:
        raise ValidationError(f"{key} must be a number")
    if abs(cents) > MAX_PRICE_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")
    return cents


def _coerce_value(key: str, rule: Field, value: Any):
    if value is None:
        return None

    if rule.kind == "int":
        return coerce_int(key, value)

    if rule.kind == "money":
        return coerce_money(key, value)

    if rule.kind == "bool":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise ValidationError(f"{key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if rule.kind == "datetime":
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{key} must be a datetime")

    # Strings
    if isinstance(value, (dict, list)):
        raise ValidationError(f"{key} must be a string")
    return str(value).strip()


def validate_payload(
    *,
    payload: dict,
    policy: PayloadPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against the policy.
    Returns a cleaned patch dict keyed by model attribute.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(k for k in policy.required_on_create if payload.get(k) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    patch: dict = {}

    for k, raw in payload.items():
        rule = policy.fields.get(k)
        if rule is None:
            if policy.ignore_unknown:
                continue
            raise ValidationError(f"Field not allowed: {k}")

        # NULL handling
        if raw is None:
            if not rule.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[rule.attr] = None
            continue

        val = _coerce_value(k, rule, raw)

        # Blank string check for non-nullable text fields
        if rule.kind == "str" and not rule.nullable and val == "":
            raise ValidationError(f"{k} cannot be blank")

        if rule.kind == "str" and rule.max_length and len(val) > rule.max_length:
            raise ValidationError(f"{k} exceeds max length {rule.max_length}")

        patch[rule.attr] = val

    return patch


def require_list(payload: dict | None, key: str, *, allow_empty: bool = False) -> list:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    value = payload.get(key)
    if not isinstance(value, list):
        raise ValidationError(f"{key} must be a list")
    if not value and not allow_empty:
        raise ValidationError(f"{key} cannot be empty")
    return value


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by the field policy alone.
    Keep these small and centralized.
    """
    for attr in ("price_cents", "wholesale_price_cents", "stock_price_cents", "total_amount_cents"):
        value = patch.get(attr)
        if value is not None and value < 0:
            raise ValidationError(f"{attr.removesuffix('_cents')} must be >= 0")

    for attr in ("quantity", "start_qty"):
        value = patch.get(attr)
        if value is not None and not 0 <= value <= MAX_QUANTITY:
            raise ValidationError(f"{attr} must be between 0 and {MAX_QUANTITY}")

    if patch.get("shelf_life") is not None and patch["shelf_life"] < 0:
        raise ValidationError("shelfLife must be >= 0")
