# Overview: Field access and numeric coercion shared by reporting and the return workflow.

"""
Records reach the pure services in two shapes: SQLAlchemy models loaded by the
gateway, and plain dicts (to_dict() output, JSON bodies, workspace state).
Numbers may arrive as strings, None or garbage; they read as 0 rather than
letting NaN into a total.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any


def field(record: Any, name: str, default: Any = None) -> Any:
    if isinstance(record, Mapping):
        value = record.get(name, default)
    else:
        value = getattr(record, name, default)
    return default if value is None else value


def to_number(value: Any) -> float:
    """Parse a numeric value; None, blanks, non-numeric text, NaN and infinities give 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def number_field(record: Any, name: str) -> float:
    return to_number(field(record, name))


def text_field(record: Any, name: str) -> str:
    value = field(record, name)
    return "" if value is None else str(value)
