"""Helpers for converting model data to DynamoDB-compatible values.

DynamoDB rejects floats and datetimes, so every model passes through
`to_dynamodb_value` before it is written.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

CENTS = Decimal("0.01")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Convert a numeric value to a Decimal quantized to cents.

    Args:
        value: Numeric value (floats are converted through their string form)

    Returns:
        Decimal rounded half-up to two decimal places
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_dynamodb_value(value: Any) -> Any:
    """Recursively convert a value to a DynamoDB-compatible representation.

    Args:
        value: Value produced by `BaseModel.model_dump()`

    Returns:
        Value containing only str, bool, int, Decimal, None, list and dict
    """
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {key: to_dynamodb_value(item) for key, item in value.items() if item is not None}
    if isinstance(value, list | tuple):
        return [to_dynamodb_value(item) for item in value]
    return value
