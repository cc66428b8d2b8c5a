from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from .errors import BadRequestError


# Largest value accepted for money inputs (Numeric(10, 2) columns)
MAX_DECIMAL = Decimal("99999999.99")
# Weights are stored in Numeric(8, 2) columns
MAX_WEIGHT_LB = Decimal("999999.99")


def require_fields(payload: dict | None, *fields: str) -> dict:
    """
    Ensure a JSON body is present and carries every named key.

    Raises BadRequestError naming the first missing field.
    """
    if not isinstance(payload, dict):
        raise BadRequestError("JSON body required")
    for field in fields:
        if payload.get(field) in (None, ""):
            raise BadRequestError(f"{field} is required")
    return payload


def parse_decimal(
    value: Any,
    field: str,
    *,
    allow_none: bool = True,
    positive: bool = False,
    max_value: Decimal = MAX_DECIMAL,
) -> Decimal | None:
    """
    Coerce a number or numeric string to Decimal.

    Rejects booleans, NaN/Infinity and negatives. With positive=True zero
    is rejected too. Values above max_value are rejected so they fit the
    column they are stored in.
    """
    if value is None or value == "":
        if allow_none:
            return None
        raise BadRequestError(f"{field} is required")

    if isinstance(value, bool):
        raise BadRequestError(f"{field} must be a number")

    try:
        # str() first so floats keep their printed form (0.1 stays 0.1)
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise BadRequestError(f"{field} must be a number")

    if not result.is_finite():
        raise BadRequestError(f"{field} must be a finite number")
    if result < 0:
        raise BadRequestError(f"{field} cannot be negative")
    if positive and result == 0:
        raise BadRequestError(f"{field} must be greater than zero")
    if result > max_value:
        raise BadRequestError(f"{field} is too large")
    return result


def parse_id(value: Any, field: str = "id") -> int:
    """Strict integer id: rejects floats, bools and non-digit strings."""
    if isinstance(value, bool):
        raise BadRequestError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise BadRequestError(f"{field} must be an integer")


def parse_id_list(values: Iterable[Any] | None, field: str = "ids") -> list[int]:
    """Normalize a list of ids, dropping duplicates but keeping order."""
    if values is None:
        return []
    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple, set)):
        raise BadRequestError(f"{field} must be a list of integers")

    seen: list[int] = []
    for raw in values:
        value = parse_id(raw, field)
        if value not in seen:
            seen.append(value)
    return seen


def parse_date(value: Any, field: str) -> date | None:
    """Parse YYYY-MM-DD (or pass a date through)."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise BadRequestError(f"{field} must be a date (YYYY-MM-DD)")
