from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .time_utils import parse_iso_date


# Maximum amount: 9,999,999,999.99 fits Numeric(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


ORDER_POLICY = ModelValidationPolicy(
    writable_fields={
        "id", "date", "product_id", "product_name", "category",
        "listing_price", "settled_amount", "profit", "status",
    },
    required_on_create={"id", "date", "product_id"},
)

INVENTORY_POLICY = ModelValidationPolicy(
    writable_fields={
        "id", "name", "category", "sku", "stock_level", "unit_cost",
        "retail_price", "bank_settled_amount", "min_stock_level",
    },
    required_on_create={"name", "category", "sku"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Numeric before Integer: money fields accept "12.50", 12.5 and 12
    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{col.key} must be a number")
        if not number.is_finite():
            raise ValidationError(f"{col.key} must be a finite number")
        return float(number.quantize(Decimal("0.01")))

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            if math.isfinite(value) and value.is_integer():
                return int(value)
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

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
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.
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

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable and not col.primary_key:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_amount(patch: dict, field: str, *, allow_negative: bool = False) -> None:
    value = patch.get(field)
    if value is None:
        return
    if not allow_negative and value < 0:
        raise ValidationError(f"{field} must be >= 0")
    if abs(Decimal(str(value))) > MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT:,}")


def enforce_rules_order(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "date" in patch:
        try:
            parsed = parse_iso_date(patch["date"])
        except ValueError:
            raise ValidationError("date must be an ISO date (YYYY-MM-DD)")
        if parsed is None:
            raise ValidationError("date is required")
        patch["date"] = parsed.isoformat()

    if "status" in patch and not patch["status"]:
        raise ValidationError("status cannot be blank")

    for field in ("listing_price", "settled_amount"):
        _check_amount(patch, field)
    # A loss-making order has negative profit
    _check_amount(patch, "profit", allow_negative=True)


def enforce_rules_inventory_item(patch: dict) -> None:
    for field in ("unit_cost", "retail_price", "bank_settled_amount"):
        _check_amount(patch, field)

    for field in ("stock_level", "min_stock_level"):
        if patch.get(field) is not None and patch[field] < 0:
            raise ValidationError(f"{field} must be >= 0")

    if "sku" in patch and patch["sku"] is not None:
        patch["sku"] = patch["sku"].strip()


def normalize_sku(sku: Any) -> str:
    return str(sku or "").strip().lower()


def ensure_unique_sku(existing_items: Iterable[Any], sku: str, exclude_id: str | None = None) -> None:
    """
    Reject a SKU already used by another item (case-insensitive, trimmed).

    existing_items may hold models or dicts. The item being edited
    (exclude_id) is ignored so saving an unchanged SKU is allowed.
    Runs before any persistence call.
    """
    wanted = normalize_sku(sku)
    if not wanted:
        raise ValidationError("sku cannot be blank")

    for item in existing_items:
        if isinstance(item, dict):
            item_id, item_sku = item.get("id"), item.get("sku")
        else:
            item_id, item_sku = getattr(item, "id", None), getattr(item, "sku", None)
        if exclude_id is not None and item_id == exclude_id:
            continue
        if normalize_sku(item_sku) == wanted:
            raise ConflictError(
                f'The SKU "{str(sku).strip()}" is already in use by another product. '
                f"Please enter a unique SKU."
            )
