"""Explicit Coercion Rules

Coercion converts a raw wire value to a field's declared type before any
transform or validator runs. It is opt-in per field kind (only Number and
Date fields coerce) and never silent: a value that cannot be converted is
reported as an Err, which the descriptor turns into a coercion failure
distinct from a constraint violation.

Sequences are coerced element by element so array fields report the index
of the first element that could not be converted.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Generic, TypeVar

from fieldspec.errors import AppError, Err, ErrorCode, Ok, Result

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CoercionRule(ABC, Generic[T]):
    """Base class for coercion rules.

    Each rule defines the target type, the rule identifier reported when
    coercion fails, and the scalar conversion. Sequence handling is shared.
    """

    @property
    @abstractmethod
    def target_type(self) -> type[T]:
        """Type this rule coerces to."""

    @property
    @abstractmethod
    def rule(self) -> str:
        """Rule identifier for coercion failures."""

    @abstractmethod
    def coerce_scalar(self, value: Any) -> Result[T, AppError]:
        """Coerce a single value."""

    def coerce(self, value: Any) -> Result[Any, AppError]:
        """Coerce a value, element-wise for lists and tuples."""
        if not isinstance(value, (list, tuple)):
            return self.coerce_scalar(value)

        coerced = []
        for idx, item in enumerate(value):
            result = self.coerce_scalar(item)
            if result.is_err():
                err = result.unwrap_err()
                return Err(err.with_metadata(index=idx))
            coerced.append(result.unwrap())
        return Ok(coerced)

    def __call__(self, value: Any) -> Result[Any, AppError]:
        return self.coerce(value)


@dataclass(frozen=True, slots=True)
class ToNumber(CoercionRule[float]):
    """Coerce numeric strings to int or float; numbers pass through.

    Integer-looking strings become int so integer checks see 5, not 5.0.
    Booleans, blank strings, NaN and infinities are rejected.
    """

    @property
    def target_type(self) -> type[float]:
        return float

    @property
    def rule(self) -> str:
        return "coerce_number"

    def coerce_scalar(self, value: Any) -> Result[Any, AppError]:
        if isinstance(value, bool):
            return Err(AppError(
                code=ErrorCode.E2004_INVALID_TYPE,
                message="Cannot coerce bool to number",
                metadata={"value": value, "target": "number"},
            ))

        if isinstance(value, (int, float, Decimal)):
            return Ok(value)

        if not isinstance(value, str):
            return Err(AppError(
                code=ErrorCode.E2004_INVALID_TYPE,
                message=f"Cannot coerce {type(value).__name__} to number",
                metadata={"target": "number"},
            ))

        stripped = value.strip()
        try:
            number: int | float = int(stripped)
        except ValueError:
            try:
                number = float(stripped)
            except ValueError:
                number = math.nan

        if isinstance(number, float) and not math.isfinite(number):
            return Err(AppError(
                code=ErrorCode.E2004_INVALID_TYPE,
                message=f"Cannot coerce '{value}' to number",
                metadata={"value": value, "target": "number"},
            ))
        return Ok(number)


@dataclass(frozen=True, slots=True)
class ToDateTime(CoercionRule[datetime]):
    """Coerce ISO8601 strings, bare dates and epoch milliseconds to datetime.

    Numeric timestamps are read as milliseconds since the Unix epoch, in UTC.
    """
    default_timezone: timezone | None = None

    @property
    def target_type(self) -> type[datetime]:
        return datetime

    @property
    def rule(self) -> str:
        return "coerce_date"

    def _parse(self, value: str) -> datetime:
        """Parse ISO8601 string handling Z suffix."""
        normalized = value.strip().replace("Z", "+00:00")
        dt = datetime.fromisoformat(normalized)
        if dt.tzinfo is None and self.default_timezone:
            dt = dt.replace(tzinfo=self.default_timezone)
        return dt

    def coerce_scalar(self, value: Any) -> Result[datetime, AppError]:
        if isinstance(value, datetime):
            return Ok(value)
        if isinstance(value, date):
            return Ok(datetime(value.year, value.month, value.day, tzinfo=self.default_timezone))
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            try:
                return Ok(datetime.fromtimestamp(value / 1000, tz=timezone.utc))
            except (OverflowError, OSError, ValueError) as e:
                return Err(AppError(
                    code=ErrorCode.E2012_INVALID_DATE,
                    message=f"Cannot coerce {value!r} to datetime: {e}",
                    metadata={"value": value, "target": "datetime", "format": "epoch_ms"},
                ))

        if not isinstance(value, str):
            return Err(AppError(
                code=ErrorCode.E2004_INVALID_TYPE,
                message=f"Cannot coerce {type(value).__name__} to datetime",
            ))

        try:
            return Ok(self._parse(value))
        except ValueError as e:
            return Err(AppError(
                code=ErrorCode.E2012_INVALID_DATE,
                message=f"Cannot coerce '{value}' to datetime: {e}",
                metadata={"value": value, "target": "datetime", "format": "ISO8601"},
            ))
