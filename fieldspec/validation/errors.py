"""Validation Error System

Structured failures with field paths, rule identifiers, offending values
(redacted if sensitive) and element positions. Supports both fail-fast and
collect-all accumulation modes.

Error Format:
{
    "message": "Validation failed",
    "mode": "collect_all",
    "errors": [
        {
            "field": "tags[2]",
            "rule": "is_uuid",
            "message": "each value in tags must be a UUID v4",
            "value": "not-a-uuid",
            "index": 2
        }
    ]
}
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

from fieldspec.errors import AppError, ErrorCode


class ValidationMode(str, Enum):
    """Validation accumulation strategy."""
    FAIL_FAST = "fail_fast"
    COLLECT_ALL = "collect_all"


@dataclass(frozen=True, slots=True)
class ValidationConfig:
    """Per-DTO validation behaviour."""
    mode: ValidationMode = ValidationMode.FAIL_FAST
    max_errors: int = 50
    extra: str = "ignore"  # ignore | forbid


@dataclass(frozen=True, slots=True)
class ValidationFailure:
    """A single rule violated on a single field or element.

    - field: name of the offending field (nested failures are prefixed by the parent)
    - rule: identifier of the violated rule (e.g. "min", "is_uuid", "coerce_number")
    - value: the offending value (may be redacted)
    - index: position of the offending element for array fields
    - coercion: True when the raw value could not be coerced to the declared type
    - children: failures reported by a nested DTO element
    """
    field: str
    rule: str
    message: str
    value: Any = None
    index: int | None = None
    code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC
    coercion: bool = False
    children: tuple[ValidationFailure, ...] = ()

    @property
    def path(self) -> str:
        return f"{self.field}[{self.index}]" if self.index is not None else self.field

    def redact(self) -> ValidationFailure:
        return ValidationFailure(field=self.field, rule=self.rule, message=self.message, value="[REDACTED]",
            index=self.index, code=self.code, coercion=self.coercion, children=self.children)

    def redact_if_sensitive(self, sensitive_fields: frozenset[str] | set[str] | None = None) -> ValidationFailure:
        """Redact the offending value if the field is sensitive."""
        if sensitive_fields and self.field in sensitive_fields and self.value is not None:
            return self.redact()
        return self

    def prefixed(self, parent: str, index: int | None = None) -> ValidationFailure:
        """Re-root a nested failure under its parent field."""
        head = f"{parent}[{index}]" if index is not None else parent
        return ValidationFailure(field=head if self.field == "$" else f"{head}.{self.field}", rule=self.rule, message=self.message, value=self.value,
            index=self.index, code=self.code, coercion=self.coercion, children=self.children)

    def flatten(self) -> list[ValidationFailure]:
        """Expand nested failures into leaf failures with full paths."""
        if not self.children: return [self]
        return [leaf for child in self.children for leaf in child.prefixed(self.field, self.index).flatten()]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for API responses."""
        result: dict[str, Any] = {"field": self.path, "rule": self.rule, "message": self.message}
        if self.value is not None: result["value"] = self.value
        if self.index is not None: result["index"] = self.index
        if self.coercion: result["coercion"] = True
        if self.children: result["children"] = [c.to_dict() for c in self.children]
        return result

    @classmethod
    def from_pydantic_error(cls, error: dict[str, Any]) -> ValidationFailure:
        """Create from a pydantic validation error dict (nested pydantic element types)."""
        loc = error.get("loc", ())
        return cls(field=cls._format_path(loc), rule=error.get("type", "validation_error"),
            message=error.get("msg", "Validation failed"), value=error.get("input"))

    @staticmethod
    def _format_path(loc: Sequence[str | int]) -> str:
        """Format a pydantic location tuple as a dotted path."""
        if not loc: return "$"
        parts: list[str] = []
        for segment in loc:
            if isinstance(segment, int): parts.append(f"[{segment}]")
            elif parts: parts.append(f".{segment}")
            else: parts.append(str(segment))
        return "".join(parts)


@dataclass
class ValidationError(Exception):
    """Validation error with structured failures, raised when a DTO payload is rejected."""
    message: str
    failures: list[ValidationFailure]
    mode: ValidationMode = ValidationMode.FAIL_FAST
    sensitive_fields: frozenset[str] | None = None

    def __post_init__(self):
        super().__init__(self.message)

    def __str__(self) -> str:
        if not self.failures: return self.message
        if len(self.failures) == 1: return f"{(f := self.failures[0]).path}: {f.message}"
        return f"{self.message} ({len(self.failures)} errors)"

    @property
    def field_errors(self) -> dict[str, list[ValidationFailure]]:
        """Group failures by field name."""
        result: dict[str, list[ValidationFailure]] = {}
        for failure in self.failures: result.setdefault(failure.field, []).append(failure)
        return result

    @property
    def first_error(self) -> ValidationFailure | None:
        return self.failures[0] if self.failures else None

    def redacted(self) -> list[ValidationFailure]:
        return [f.redact_if_sensitive(self.sensitive_fields) for f in self.failures]

    def to_app_error(self) -> AppError:
        """Convert to AppError for the error handling system."""
        failures = self.redacted()
        if len(failures) == 1:
            f = failures[0]
            return AppError(code=f.code, message=f"{f.path}: {f.message}",
                metadata={"field": f.path, "rule": f.rule, "value": f.value})
        return AppError(code=ErrorCode.E2000_VALIDATION_GENERIC, message=f"Validation failed: {len(failures)} errors",
            metadata={"validation_mode": self.mode.value, "error_count": len(failures),
                "errors": [f.to_dict() for f in failures]})

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for API responses."""
        failures = self.redacted()
        return {"message": self.message, "mode": self.mode.value, "error_count": len(failures),
            "errors": [f.to_dict() for f in failures]}


class ConfigurationError(Exception):
    """A builder was invoked with contradictory or unusable options.

    Raised while descriptors are being constructed so misconfiguration
    surfaces at startup rather than on a request.
    """

    def __init__(self, message: str, *, kind: str | None = None, option: str | None = None):
        self.message, self.kind, self.option = message, kind, option
        super().__init__(message)

    def to_app_error(self) -> AppError:
        return AppError(code=ErrorCode.E9010_CONFIGURATION_INVALID, message=self.message,
            metadata={k: v for k, v in {"kind": self.kind, "option": self.option}.items() if v is not None})


class ValidationErrorAccumulator(ABC):
    """Abstract base for error accumulation strategies."""

    @abstractmethod
    def add_error(self, failure: ValidationFailure) -> bool:
        """Add a failure. Returns True if should continue, False if should stop."""

    @abstractmethod
    def get_errors(self) -> list[ValidationFailure]:
        """Get accumulated failures."""

    @abstractmethod
    def has_errors(self) -> bool:
        """Check if any failures accumulated."""

    @property
    @abstractmethod
    def mode(self) -> ValidationMode:
        """Get the accumulation mode."""

    def raise_if_errors(self, message: str = "Validation failed", sensitive_fields: frozenset[str] | None = None) -> None:
        """Raise ValidationError if failures exist."""
        if self.has_errors():
            raise ValidationError(message=message, failures=self.get_errors(), mode=self.mode,
                sensitive_fields=sensitive_fields)


@dataclass
class FailFastAccumulator(ValidationErrorAccumulator):
    """Fail-fast accumulator: stops on first failure."""
    _error: ValidationFailure | None = None

    @property
    def mode(self) -> ValidationMode: return ValidationMode.FAIL_FAST

    def add_error(self, failure: ValidationFailure) -> bool:
        if self._error is None: self._error = failure
        return False

    def get_errors(self) -> list[ValidationFailure]: return [self._error] if self._error else []

    def has_errors(self) -> bool: return self._error is not None


@dataclass
class CollectAllAccumulator(ValidationErrorAccumulator):
    """Collect-all accumulator: gathers failures up to max_errors."""
    _errors: list[ValidationFailure] = field(default_factory=list)
    max_errors: int = 50

    @property
    def mode(self) -> ValidationMode: return ValidationMode.COLLECT_ALL

    def add_error(self, failure: ValidationFailure) -> bool:
        if len(self._errors) < self.max_errors: self._errors.append(failure)
        return len(self._errors) < self.max_errors

    def get_errors(self) -> list[ValidationFailure]: return self._errors.copy()

    def has_errors(self) -> bool: return len(self._errors) > 0


def create_accumulator(mode: ValidationMode, max_errors: int = 50) -> ValidationErrorAccumulator:
    """Factory for creating accumulators based on mode."""
    return FailFastAccumulator() if mode == ValidationMode.FAIL_FAST else CollectAllAccumulator(max_errors=max_errors)
