"""
Value coercion between loosely-typed tabular cells and declared types.

Conversion runs in two stages:

1. Cast: the raw value is converted directly according to the declared type
   tag (null handling, text-to-date parsing, numeric widening/narrowing).
2. Parse: only if the cast raised, the value is stringified and re-parsed.

The second stage is a compatibility net for sources that hand back text for
numeric columns (spreadsheet drivers commonly do). A value that fails both
stages raises ``CoercionError`` chained to the parse-stage error.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict

import pandas as pd

from etl_toolbox.exceptions import CoercionError, NonNullableNullError

TRUE_TOKENS = frozenset({"true", "t", "yes", "y", "1"})
FALSE_TOKENS = frozenset({"false", "f", "no", "n", "0"})


class ValueType(Enum):
    """Supported declared types for fields and columns."""

    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    OBJECT = "object"

    @property
    def is_textual(self) -> bool:
        return self is ValueType.STRING

    @property
    def is_temporal(self) -> bool:
        return self in (ValueType.DATE, ValueType.DATETIME)


@dataclass(frozen=True)
class DeclaredType:
    """A type tag plus nullability, the target of every coercion."""

    value_type: ValueType
    nullable: bool = False

    @property
    def accepts_null(self) -> bool:
        return (
            self.nullable
            or self.value_type.is_textual
            or self.value_type is ValueType.OBJECT
        )

    def __str__(self) -> str:
        suffix = "?" if self.nullable else ""
        return f"{self.value_type.value}{suffix}"


def is_null(value: Any) -> bool:
    """True for ``None`` and the pandas/numpy missing-value markers."""
    if value is None:
        return True
    if isinstance(value, (str, bytes)):
        return False
    try:
        return bool(pd.api.types.is_scalar(value) and pd.isna(value))
    except (TypeError, ValueError):
        return False


def _native(value: Any) -> Any:
    # numpy scalars expose .item(); pandas Timestamps are datetimes already
    if hasattr(value, "item") and not isinstance(value, (datetime, date, Decimal)):
        try:
            return value.item()
        except (TypeError, ValueError):
            return value
    return value


def normalize_cell(value: Any) -> Any:
    """Missing markers to ``None``, numpy scalars to native Python values."""
    if is_null(value):
        return None
    return _native(value)


def _parse_datetime(text: str) -> datetime:
    parsed = pd.to_datetime(text.strip())
    if pd.isna(parsed):
        raise ValueError(f"Cannot parse '{text}' as date/time")
    return parsed.to_pydatetime()


# ---------------------------------------------------------------------------
# Stage 1: casts keyed by type tag
# ---------------------------------------------------------------------------


def _cast_integer(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    # Fractions narrow to the nearest integer, ties to even
    if isinstance(value, float):
        return round(value)
    if isinstance(value, Decimal):
        return int(value.to_integral_value(rounding=ROUND_HALF_EVEN))
    raise TypeError(f"Cannot cast {type(value).__name__} to integer")


def _cast_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isinf(value):
            raise ValueError("Infinite values have no decimal representation")
        return Decimal(str(value))
    raise TypeError(f"Cannot cast {type(value).__name__} to decimal")


def _cast_float(value: Any) -> float:
    if isinstance(value, float):
        return value
    if isinstance(value, (bool, int, Decimal)):
        return float(value)
    raise TypeError(f"Cannot cast {type(value).__name__} to float")


def _cast_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)) and value in (0, 1):
        return bool(value)
    raise TypeError(f"Cannot cast {value!r} to boolean")


def _cast_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    return str(value)


def _cast_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Cannot cast {type(value).__name__} to date")


def _cast_datetime(value: Any) -> datetime:
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raise TypeError(f"Cannot cast {type(value).__name__} to datetime")


_CASTS: Dict[ValueType, Callable[[Any], Any]] = {
    ValueType.STRING: _cast_string,
    ValueType.INTEGER: _cast_integer,
    ValueType.DECIMAL: _cast_decimal,
    ValueType.FLOAT: _cast_float,
    ValueType.BOOLEAN: _cast_boolean,
    ValueType.DATE: _cast_date,
    ValueType.DATETIME: _cast_datetime,
    ValueType.OBJECT: lambda value: value,
}


# ---------------------------------------------------------------------------
# Stage 2: string parsers keyed by type tag
# ---------------------------------------------------------------------------


def _parse_integer(text: str) -> int:
    return int(text.strip())


def _parse_decimal(text: str) -> Decimal:
    try:
        return Decimal(text.strip())
    except InvalidOperation as exc:
        raise ValueError(f"Cannot parse '{text}' as decimal") from exc


def _parse_boolean(text: str) -> bool:
    token = text.strip().lower()
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    raise ValueError(f"Cannot parse '{text}' as boolean")


_PARSERS: Dict[ValueType, Callable[[str], Any]] = {
    ValueType.STRING: lambda text: text,
    ValueType.INTEGER: _parse_integer,
    ValueType.DECIMAL: _parse_decimal,
    ValueType.FLOAT: lambda text: float(text.strip()),
    ValueType.BOOLEAN: _parse_boolean,
    ValueType.DATE: lambda text: _parse_datetime(text).date(),
    ValueType.DATETIME: _parse_datetime,
    ValueType.OBJECT: lambda text: text,
}


def cast_value(value: Any, target: DeclaredType, name: str = "") -> Any:
    """Stage 1: direct cast by type tag."""
    if is_null(value):
        if target.accepts_null:
            return None
        raise NonNullableNullError(
            f"A value for non-nullable type '{target}' expected",
            raw_value=value,
            target_type=str(target),
            name=name,
        )

    if isinstance(value, str) and target.value_type.is_temporal:
        parsed = _parse_datetime(value)
        return parsed.date() if target.value_type is ValueType.DATE else parsed

    return _CASTS[target.value_type](_native(value))


def parse_value(value: Any, target: DeclaredType, name: str = "") -> Any:
    """Stage 2: stringify and re-parse."""
    text = "" if is_null(value) else str(value)
    if not text:
        if target.nullable:
            return None
        raise NonNullableNullError(
            f"A value for non-nullable type '{target}' expected",
            raw_value=value,
            target_type=str(target),
            name=name,
        )
    return _PARSERS[target.value_type](text)


def coerce(value: Any, target: DeclaredType, name: str = "") -> Any:
    """Convert ``value`` to ``target`` with the cast-then-parse strategy.

    Raises:
        NonNullableNullError: null/empty value for a non-nullable target
        CoercionError: both stages failed
    """
    try:
        return cast_value(value, target, name)
    except Exception:
        return _parse_fallback(value, target, name)


def _parse_fallback(value: Any, target: DeclaredType, name: str) -> Any:
    try:
        return parse_value(value, target, name)
    except CoercionError:
        raise
    except Exception as exc:
        raise CoercionError(
            f"Unable to convert value '{value}' of type '{type(value).__name__}' "
            f"to type '{target}' for '{name}': {exc}",
            raw_value=value,
            target_type=str(target),
            name=name,
        ) from exc
