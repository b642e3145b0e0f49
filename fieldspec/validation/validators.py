"""Primitive Validator Library

Atomic, immutable validators. Every validator is total: it never raises on
malformed input and always answers with a ValidationResult.

Messages carry a ``{field}`` placeholder that the field descriptor fills in
with the field name, so one validator instance is shared by every field that
uses it.

Features:
- Frozen dataclass validators for immutability
- Compiled regex caching
- Element-wise application via the Each combinator (first failing index wins)
- Lazily resolved enum sets and nested element types
"""
from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Sequence
from urllib.parse import urlparse
from uuid import UUID as StdUUID

import phonenumbers
from email_validator import EmailNotValidError, validate_email
from phonenumbers import NumberParseException
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from fieldspec.errors import ErrorCode

from .errors import ConfigurationError, ValidationFailure, ValidationMode
from .lazy import Lazy


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Result of a validation check with rich context."""
    is_valid: bool
    error_message: str | None = None
    error_code: ErrorCode | None = None
    constraint: str | None = None
    expected: Any = None
    actual: Any = None
    index: int | None = None
    metadata: dict[str, Any] | None = None

    @classmethod
    def valid(cls) -> ValidationResult: return cls(is_valid=True)

    @classmethod
    def invalid(cls, message: str, code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC, *,
                constraint: str | None = None, expected: Any = None, actual: Any = None,
                index: int | None = None, **metadata) -> ValidationResult:
        return cls(is_valid=False, error_message=message, error_code=code, constraint=constraint,
            expected=expected, actual=actual, index=index, metadata=metadata or None)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        if self.is_valid: return {"valid": True}
        return {"valid": False, "message": self.error_message, "code": self.error_code.name if self.error_code else None,
            "constraint": self.constraint, "expected": self.expected, "actual": self.actual, "index": self.index}


class AtomicValidator(ABC):
    """Base class for atomic validators."""

    @abstractmethod
    def validate(self, value: Any) -> ValidationResult:
        """Validate a value. Returns ValidationResult."""

    @property
    @abstractmethod
    def constraint_name(self) -> str:
        """Rule identifier reported in failures."""

    def validate_in(self, value: Any, mode: ValidationMode | None) -> ValidationResult:
        """Validate under the caller's accumulation mode. Only nested validators use the mode."""
        return self.validate(value)

    def __call__(self, value: Any) -> ValidationResult: return self.validate(value)

    def each(self) -> Each: return Each(self)


def _type_error(expected: str, value: Any, constraint: str) -> ValidationResult:
    return ValidationResult.invalid(f"{{field}} must be {expected}", ErrorCode.E2004_INVALID_TYPE,
        constraint=constraint, expected=expected, actual=value)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool): return False
    if isinstance(value, (int, Decimal)): return not (isinstance(value, Decimal) and not value.is_finite())
    return isinstance(value, float) and math.isfinite(value)


# ============================================================================
# String Validators
# ============================================================================

@dataclass(frozen=True, slots=True)
class IsString(AtomicValidator):
    """Validate value is a string."""

    @property
    def constraint_name(self) -> str: return "is_string"

    def validate(self, value: Any) -> ValidationResult:
        if isinstance(value, str): return ValidationResult.valid()
        return _type_error("a string", value, self.constraint_name)


@dataclass(frozen=True, slots=True)
class NonEmpty(AtomicValidator):
    """Validate value is not empty ('', None, empty collection)."""

    @property
    def constraint_name(self) -> str: return "not_empty"

    def validate(self, value: Any) -> ValidationResult:
        if value is None or value == "" or (isinstance(value, (list, tuple, dict)) and not value):
            return ValidationResult.invalid("{field} should not be empty", ErrorCode.E2001_REQUIRED_FIELD_MISSING,
                constraint=self.constraint_name, expected="non-empty value", actual=value)
        return ValidationResult.valid()


@dataclass(frozen=True, slots=True)
class StringLength(AtomicValidator):
    """Validate string length constraints (bounds are inclusive)."""
    min_length: int | None = None
    max_length: int | None = None

    @property
    def constraint_name(self) -> str:
        if self.min_length is not None and self.max_length is not None:
            return f"length[{self.min_length},{self.max_length}]"
        if self.min_length is not None:
            return "min_length"
        if self.max_length is not None:
            return "max_length"
        return "string_length"

    def validate(self, value: Any) -> ValidationResult:
        if not isinstance(value, str):
            return _type_error("a string", value, "is_string")

        length = len(value)

        if self.min_length is not None and length < self.min_length:
            return ValidationResult.invalid(
                f"{{field}} must be longer than or equal to {self.min_length} characters",
                ErrorCode.E2003_OUT_OF_RANGE,
                constraint="min_length",
                expected=f">= {self.min_length} characters",
                actual=value,
            )

        if self.max_length is not None and length > self.max_length:
            return ValidationResult.invalid(
                f"{{field}} must be shorter than or equal to {self.max_length} characters",
                ErrorCode.E2003_OUT_OF_RANGE,
                constraint="max_length",
                expected=f"<= {self.max_length} characters",
                actual=value,
            )

        return ValidationResult.valid()


@dataclass(frozen=True, slots=True)
class RegexPattern(AtomicValidator):
    """Validate string against regex pattern."""
    pattern: str
    flags: int = 0
    description: str | None = None
    _compiled: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_compiled", re.compile(self.pattern, self.flags))

    @property
    def constraint_name(self) -> str:
        return self.description or "matches"

    def validate(self, value: Any) -> ValidationResult:
        if not isinstance(value, str):
            return _type_error("a string", value, "is_string")

        if not self._compiled.match(value):
            return ValidationResult.invalid(
                f"{{field}} must match {self.description or self.pattern} format",
                ErrorCode.E2002_INVALID_FORMAT,
                constraint=self.constraint_name,
                expected=f"match pattern '{self.pattern}'",
                actual=value[:50] + ("..." if len(value) > 50 else ""),
            )

        return ValidationResult.valid()


# ============================================================================
# Numeric Validators
# ============================================================================

@dataclass(frozen=True, slots=True)
class IsNumber(AtomicValidator):
    """Validate value is a finite number (booleans are not numbers)."""

    @property
    def constraint_name(self) -> str: return "is_number"

    def validate(self, value: Any) -> ValidationResult:
        if _is_number(value): return ValidationResult.valid()
        return ValidationResult.invalid("{field} must be a number conforming to the specified constraints",
            ErrorCode.E2004_INVALID_TYPE, constraint=self.constraint_name, expected="number", actual=value)


@dataclass(frozen=True, slots=True)
class IsInteger(AtomicValidator):
    """Validate value is an integral number (5 and 5.0 pass, 5.5 fails)."""

    @property
    def constraint_name(self) -> str: return "is_int"

    def validate(self, value: Any) -> ValidationResult:
        if _is_number(value) and (isinstance(value, int) or value == int(value)):
            return ValidationResult.valid()
        return ValidationResult.invalid("{field} must be an integer number", ErrorCode.E2004_INVALID_TYPE,
            constraint=self.constraint_name, expected="integer", actual=value)


@dataclass(frozen=True, slots=True)
class NumericRange(AtomicValidator):
    """Validate inclusive numeric bounds. A bound of 0 is a real bound."""
    min_value: float | int | None = None
    max_value: float | int | None = None

    @property
    def constraint_name(self) -> str:
        parts = []
        if self.min_value is not None:
            parts.append(f">={self.min_value}")
        if self.max_value is not None:
            parts.append(f"<={self.max_value}")
        return f"range[{', '.join(parts)}]" if parts else "numeric"

    def validate(self, value: Any) -> ValidationResult:
        if not _is_number(value):
            return ValidationResult.invalid("{field} must be a number conforming to the specified constraints",
                ErrorCode.E2004_INVALID_TYPE, constraint="is_number", expected="number", actual=value)

        if self.min_value is not None and value < self.min_value:
            return ValidationResult.invalid(
                f"{{field}} must not be less than {self.min_value}",
                ErrorCode.E2003_OUT_OF_RANGE,
                constraint="min",
                expected=f">= {self.min_value}",
                actual=value,
            )

        if self.max_value is not None and value > self.max_value:
            return ValidationResult.invalid(
                f"{{field}} must not be greater than {self.max_value}",
                ErrorCode.E2003_OUT_OF_RANGE,
                constraint="max",
                expected=f"<= {self.max_value}",
                actual=value,
            )

        return ValidationResult.valid()


@dataclass(frozen=True, slots=True)
class Positive(AtomicValidator):
    """Validate number is positive (> 0)."""

    @property
    def constraint_name(self) -> str:
        return "positive"

    def validate(self, value: Any) -> ValidationResult:
        if not _is_number(value) or value <= 0:
            return ValidationResult.invalid(
                "{field} must be a positive number",
                ErrorCode.E2003_OUT_OF_RANGE,
                constraint=self.constraint_name,
                expected="> 0",
                actual=value,
            )

        return ValidationResult.valid()


# ============================================================================
# Boolean / Enum Validators
# ============================================================================

@dataclass(frozen=True, slots=True)
class IsBoolean(AtomicValidator):
    """Validate value is a boolean."""

    @property
    def constraint_name(self) -> str: return "is_boolean"

    def validate(self, value: Any) -> ValidationResult:
        if isinstance(value, bool): return ValidationResult.valid()
        return _type_error("a boolean value", value, self.constraint_name)


def enum_values(source: Any) -> list[Any]:
    """Flatten an enum accessor's result into the list of legal values."""
    if isinstance(source, type) and issubclass(source, Enum):
        return [member.value for member in source]
    if isinstance(source, Mapping):
        return list(source.values())
    if isinstance(source, Iterable) and not isinstance(source, (str, bytes)):
        return list(source)
    raise ConfigurationError(f"enum accessor returned {type(source).__name__}, expected an Enum, mapping or iterable",
        kind="enum", option="enum")


def enum_name(source: Any) -> str | None:
    return source.__name__ if isinstance(source, type) else None


@dataclass(frozen=True, slots=True)
class IsEnum(AtomicValidator):
    """Validate membership in a lazily resolved enum.

    Accepts raw values and members of the resolved enum class.
    """
    source: Lazy

    @property
    def constraint_name(self) -> str: return "is_enum"

    def validate(self, value: Any) -> ValidationResult:
        allowed = enum_values(self.source.resolve())
        candidate = value.value if isinstance(value, Enum) else value
        if not isinstance(candidate, bool) and candidate in allowed:
            return ValidationResult.valid()
        shown = ", ".join(str(v) for v in allowed)
        return ValidationResult.invalid(f"{{field}} must be one of the following values: {shown}",
            ErrorCode.E2005_CONSTRAINT_VIOLATION, constraint=self.constraint_name, expected=allowed, actual=value)


# ============================================================================
# Format Validators
# ============================================================================

@dataclass(frozen=True, slots=True)
class EmailValidator(AtomicValidator):
    """Validate email address shape (syntax only, no DNS lookups)."""

    @property
    def constraint_name(self) -> str:
        return "is_email"

    def validate(self, value: Any) -> ValidationResult:
        if not isinstance(value, str):
            return _type_error("an email", value, self.constraint_name)

        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            return ValidationResult.invalid(
                "{field} must be an email",
                ErrorCode.E2010_INVALID_EMAIL,
                constraint=self.constraint_name,
                expected="valid email address",
                actual=value,
            )

        return ValidationResult.valid()


@dataclass(frozen=True, slots=True)
class UUIDValidator(AtomicValidator):
    """Validate canonical UUID strings of a given version."""
    version: int | None = 4

    @property
    def constraint_name(self) -> str:
        return "is_uuid"

    def _invalid(self, value: Any) -> ValidationResult:
        expected = f"UUID v{self.version}" if self.version else "UUID"
        return ValidationResult.invalid(f"{{field}} must be a {expected}", ErrorCode.E2011_INVALID_UUID,
            constraint=self.constraint_name, expected=expected,
            actual=value[:50] if isinstance(value, str) and len(value) > 50 else value)

    def validate(self, value: Any) -> ValidationResult:
        if isinstance(value, StdUUID):
            parsed = value
        elif isinstance(value, str):
            try:
                parsed = StdUUID(value)
            except ValueError:
                return self._invalid(value)
            if str(parsed) != value.lower():
                return self._invalid(value)
        else:
            return self._invalid(value)

        if self.version and parsed.version != self.version:
            return self._invalid(value)
        return ValidationResult.valid()


@dataclass(frozen=True, slots=True)
class URLValidator(AtomicValidator):
    """Validate URL format."""
    allowed_schemes: frozenset[str] = frozenset({"http", "https"})
    require_tld: bool = True

    def __init__(self, allowed_schemes: Sequence[str] = ("http", "https"), require_tld: bool = True):
        object.__setattr__(self, "allowed_schemes", frozenset(allowed_schemes))
        object.__setattr__(self, "require_tld", require_tld)

    @property
    def constraint_name(self) -> str:
        return "is_url"

    def _invalid(self, value: str, expected: str) -> ValidationResult:
        return ValidationResult.invalid("{field} must be a URL address", ErrorCode.E2002_INVALID_FORMAT,
            constraint=self.constraint_name, expected=expected, actual=value[:50] if len(value) > 50 else value)

    def validate(self, value: Any) -> ValidationResult:
        if not isinstance(value, str):
            return _type_error("a URL address", value, self.constraint_name)

        try:
            parsed = urlparse(value)
            host = parsed.hostname or ""
        except ValueError:
            return self._invalid(value, "valid URL")

        if not parsed.scheme:
            return self._invalid(value, "URL with scheme")
        if parsed.scheme not in self.allowed_schemes:
            return self._invalid(value, f"scheme in {sorted(self.allowed_schemes)}")
        if not host:
            return self._invalid(value, "URL with host")
        if self.require_tld and "." not in host:
            return self._invalid(value, "URL with TLD (e.g., .com)")
        if any(c.isspace() for c in value):
            return self._invalid(value, "URL without whitespace")

        return ValidationResult.valid()


@dataclass(frozen=True, slots=True)
class PhoneValidator(AtomicValidator):
    """Validate phone number shape. Numbers without a +country prefix need a region."""
    region: str | None = None

    @property
    def constraint_name(self) -> str:
        return "is_phone_number"

    def validate(self, value: Any) -> ValidationResult:
        if not isinstance(value, str):
            return _type_error("a valid phone number", value, self.constraint_name)

        try:
            number = phonenumbers.parse(value, self.region)
        except NumberParseException:
            number = None

        if number is None or not phonenumbers.is_valid_number(number):
            return ValidationResult.invalid("{field} must be a valid phone number", ErrorCode.E2013_INVALID_PHONE,
                constraint=self.constraint_name, expected="phone number", actual=value)
        return ValidationResult.valid()


@dataclass(frozen=True, slots=True)
class IsDate(AtomicValidator):
    """Validate value is a datetime instance (after coercion)."""

    @property
    def constraint_name(self) -> str: return "is_date"

    def validate(self, value: Any) -> ValidationResult:
        if isinstance(value, datetime): return ValidationResult.valid()
        return ValidationResult.invalid("{field} must be a Date instance", ErrorCode.E2012_INVALID_DATE,
            constraint=self.constraint_name, expected="ISO8601 datetime", actual=value)


# ============================================================================
# Collection Validators
# ============================================================================

@dataclass(frozen=True, slots=True)
class ListLength(AtomicValidator):
    """Validate list/array size constraints."""
    min_length: int | None = None
    max_length: int | None = None

    @property
    def constraint_name(self) -> str:
        parts = []
        if self.min_length is not None:
            parts.append(f"min={self.min_length}")
        if self.max_length is not None:
            parts.append(f"max={self.max_length}")
        return f"list_length[{', '.join(parts)}]" if parts else "is_array"

    def validate(self, value: Any) -> ValidationResult:
        if not isinstance(value, (list, tuple)):
            return _type_error("an array", value, "is_array")

        length = len(value)

        if self.min_length is not None and length < self.min_length:
            return ValidationResult.invalid(
                f"{{field}} must contain at least {self.min_length} elements",
                ErrorCode.E2003_OUT_OF_RANGE,
                constraint="array_min_size",
                expected=f">= {self.min_length} items",
                actual=f"{length} items",
            )

        if self.max_length is not None and length > self.max_length:
            return ValidationResult.invalid(
                f"{{field}} must contain no more than {self.max_length} elements",
                ErrorCode.E2003_OUT_OF_RANGE,
                constraint="array_max_size",
                expected=f"<= {self.max_length} items",
                actual=f"{length} items",
            )

        return ValidationResult.valid()


@dataclass(frozen=True, slots=True)
class ArrayNotEmpty(AtomicValidator):
    """Validate array has at least one element."""

    @property
    def constraint_name(self) -> str: return "array_not_empty"

    def validate(self, value: Any) -> ValidationResult:
        if not isinstance(value, (list, tuple)):
            return _type_error("an array", value, "is_array")
        if not value:
            return ValidationResult.invalid("{field} should not be empty", ErrorCode.E2001_REQUIRED_FIELD_MISSING,
                constraint=self.constraint_name, expected="non-empty array", actual=[])
        return ValidationResult.valid()


def _nested_failures(target: Any, item: Any, mode: ValidationMode | None = None) -> list[ValidationFailure]:
    """Validate one element against a nested DTO type (Dto subclass or pydantic model)."""
    if isinstance(target, type) and isinstance(item, target):
        return []
    if hasattr(target, "collect_failures"):
        _, failures = target.collect_failures(item, mode)
        return failures
    if isinstance(target, type) and issubclass(target, BaseModel):
        try:
            target.model_validate(item)
        except PydanticValidationError as exc:
            return [ValidationFailure.from_pydantic_error(err) for err in exc.errors()]
        return []
    name = getattr(target, "__name__", str(target))
    return [ValidationFailure(field="$", rule="nested", message=f"must be a {name}", value=item,
        code=ErrorCode.E2004_INVALID_TYPE)]


@dataclass(frozen=True, slots=True)
class ValidateNested(AtomicValidator):
    """Validate every element of an array as an instance of a lazily resolved DTO type.

    Elements are checked with the caller's accumulation mode, so a collect-all
    parse reports every failing field of the first failing element.
    """
    target: Lazy

    @property
    def constraint_name(self) -> str: return "nested"

    def validate(self, value: Any) -> ValidationResult:
        return self.validate_in(value, None)

    def validate_in(self, value: Any, mode: ValidationMode | None) -> ValidationResult:
        if not isinstance(value, (list, tuple)):
            return _type_error("an array", value, "is_array")

        target = self.target.resolve()
        for idx, item in enumerate(value):
            if failures := _nested_failures(target, item, mode):
                return ValidationResult.invalid(
                    f"each value in {{field}} must be a valid {getattr(target, '__name__', 'object')}",
                    ErrorCode.E2005_CONSTRAINT_VIOLATION,
                    constraint=self.constraint_name,
                    actual=None,
                    index=idx,
                    children=tuple(failures),
                )
        return ValidationResult.valid()


# ============================================================================
# Combinators
# ============================================================================

@dataclass(frozen=True, slots=True)
class Each(AtomicValidator):
    """Apply a validator to every element of an array; the first failing element wins."""
    validator: AtomicValidator

    @property
    def constraint_name(self) -> str:
        return self.validator.constraint_name

    def validate(self, value: Any) -> ValidationResult:
        return self.validate_in(value, None)

    def validate_in(self, value: Any, mode: ValidationMode | None) -> ValidationResult:
        if not isinstance(value, (list, tuple)):
            return _type_error("an array", value, "is_array")

        for idx, item in enumerate(value):
            if not (result := self.validator.validate_in(item, mode)).is_valid:
                message = (result.error_message or "{field} is invalid").replace("{field}", "each value in {field}", 1)
                return replace(result, error_message=message, index=idx)
        return ValidationResult.valid()
