# Overview: Payload validation for catalog writes and checkout requests.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .records import CheckoutItem, CheckoutRequest


# Upper bound for a unit price in minor units
MAX_PRICE = 999_999_999

# Integer columns are stored as signed 64-bit (BIGINT / SQLite INTEGER)
MAX_INT64 = 2**63 - 1
MIN_INT64 = -(2**63)


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Which columns a client may write, and which of them a create must carry.

    Column types, nullability and String lengths come from the SQLAlchemy
    model, so the same rules hold for both storage backends.
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()


PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "price", "stock", "active", "category_id"}),
    required_on_create=frozenset({"name", "price"}),
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "description"}),
    required_on_create=frozenset({"name"}),
)


def is_storable_int(value: int) -> bool:
    return MIN_INT64 <= value <= MAX_INT64


def _parse_int(key: str, value: Any) -> int:
    # bool is an int subclass; JSON true is not a quantity
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    if isinstance(value, str):
        digits = value.strip()
        if "e" in digits.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if "." in digits:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(digits)
        except ValueError:
            raise ValidationError(f"{key} must be an integer") from None
    raise ValidationError(f"{key} must be an integer")


def _coerce_int(key: str, value: Any) -> int:
    number = _parse_int(key, value)
    if not is_storable_int(number):
        raise ValidationError(f"{key} is out of range")
    return number


def _coerce(column, value: Any):
    if isinstance(column.type, Integer):
        return _coerce_int(column.key, value)
    if isinstance(column.type, Boolean):
        if not isinstance(value, bool):
            raise ValidationError(f"{column.key} must be a boolean")
        return value
    if isinstance(column.type, (String, Text)):
        return str(value).strip()
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict | None,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Check a JSON object against the model's columns and the policy.

    partial=False is create: every required_on_create field must be present.
    partial=True is patch: only the keys that were sent are checked.

    Returns the normalized fields; unknown or read-only keys are rejected
    rather than ignored.
    """
    payload = {} if payload is None else payload
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(policy.required_on_create.difference(payload))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}
    for key in payload:
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        if key not in columns:
            raise ValidationError(f"Unknown field: {key}")

    cleaned: dict = {}
    for key, raw in payload.items():
        column = columns[key]

        if raw is None:
            if not column.nullable:
                raise ValidationError(f"{key} cannot be null")
            cleaned[key] = None
            continue

        value = _coerce(column, raw)
        if isinstance(value, str):
            if value == "" and not column.nullable:
                raise ValidationError(f"{key} is required")
            length = getattr(column.type, "length", None)
            if length and len(value) > length:
                raise ValidationError(f"{key} exceeds max length {length}")

        cleaned[key] = value

    return cleaned


def validate_for_create(*, model: DeclarativeMeta, payload: dict | None, policy: ModelValidationPolicy) -> dict:
    return validate_payload(model=model, payload=payload, policy=policy, partial=False)


def validate_for_update(*, model: DeclarativeMeta, payload: dict | None, policy: ModelValidationPolicy) -> dict:
    patch = validate_payload(model=model, payload=payload, policy=policy, partial=True)
    if not patch:
        raise ValidationError("No fields to update")
    return patch


def enforce_rules_product(fields: dict) -> None:
    """Product rules the column metadata cannot express."""
    price = fields.get("price")
    if price is not None:
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE}")

    stock = fields.get("stock")
    if stock is not None and stock < 0:
        raise ValidationError("stock must be >= 0")

    category_id = fields.get("category_id")
    if category_id is not None and category_id <= 0:
        raise ValidationError("category_id must be positive")


# ---------------------------------------------------------------------------
# Checkout requests
# ---------------------------------------------------------------------------

def _strict_int(value: Any, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} must be an integer")
    return value


def parse_checkout_payload(payload: Any) -> CheckoutRequest:
    """
    Turn a decoded JSON body into a CheckoutRequest.

    Only the shape and types are checked here; positivity and emptiness are
    the job of validate_checkout so that the engine applies the same rules
    to requests built in code.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    items = payload.get("items")
    if items is None:
        items = []
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    parsed = []
    for i, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"item[{i}] must be an object")
        parsed.append(CheckoutItem(
            product_id=_strict_int(raw.get("product_id", 0), f"item[{i}] product_id"),
            quantity=_strict_int(raw.get("quantity", 0), f"item[{i}] quantity"),
        ))

    return CheckoutRequest(items=tuple(parsed))


def validate_checkout(request: CheckoutRequest) -> None:
    """Pure shape check: same input, same outcome, no storage access."""
    if not request.items:
        raise ValidationError("items cannot be empty")
    for i, item in enumerate(request.items):
        if item.product_id <= 0:
            raise ValidationError(f"item[{i}] product_id must be positive")
        if item.quantity <= 0:
            raise ValidationError(f"item[{i}] quantity must be positive")
        if item.quantity > MAX_INT64:
            raise ValidationError(f"item[{i}] quantity is out of range")
