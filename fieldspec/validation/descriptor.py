"""Field Descriptors

A FieldDescriptor is the immutable unit produced by every field builder. It
bundles, in a fixed order, an optional coercion rule, transforms, validators
and a metadata fragment for schema publishing, and knows how to run that
pipeline against one raw value.

Descriptors are built once at DTO class definition and never mutated;
``as_optional`` returns a new descriptor.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import CoreSchema, core_schema

from fieldspec.errors import ErrorCode

from .coercion import CoercionRule
from .errors import ValidationFailure, ValidationMode
from .lazy import Lazy
from .transforms import Transform
from .validators import AtomicValidator, ValidationResult, enum_name, enum_values


class FieldKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    EMAIL = "email"
    PHONE = "phone"
    UUID = "uuid"
    URL = "url"
    DATE = "date"
    PASSWORD = "password"
    TRANSLATION_SET = "translation_set"


class _Missing:
    """Sentinel for an absent field (distinct from None, '' and 0)."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str: return "MISSING"

    def __bool__(self) -> bool: return False

    def __copy__(self): return self

    def __deepcopy__(self, memo): return self


MISSING: Any = _Missing()


@dataclass(frozen=True, slots=True)
class MetadataFragment:
    """Schema-publishing facts for one field.

    ``constraints`` describe each value (minLength, minimum, pattern...);
    ``array_constraints`` describe the array itself (minItems, maxItems).
    Enum values and nested ref targets are lazy and resolved at render time.
    """
    declared_type: str
    is_array: bool = False
    required: bool = True
    example: Any = MISSING
    enum: Lazy | None = None
    enum_name: str | None = None
    format: str | None = None
    description: str | None = None
    constraints: Mapping[str, Any] = field(default_factory=dict)
    array_constraints: Mapping[str, Any] = field(default_factory=dict)
    ref: Lazy | None = None
    default: Any = MISSING
    deprecated: bool = False

    @property
    def nested_type(self) -> type | None:
        return self.ref.resolve() if self.ref is not None else None

    def _item_schema(self, ref_template: str) -> dict[str, Any]:
        if self.ref is not None:
            return {"$ref": ref_template.format(name=self.nested_type.__name__)}

        item: dict[str, Any] = {"type": self.declared_type}
        if self.format: item["format"] = self.format
        if self.enum is not None:
            source = self.enum.resolve()
            item["enum"] = values = enum_values(source)
            if values and all(isinstance(v, int) and not isinstance(v, bool) for v in values): item["type"] = "integer"
            if name := self.enum_name or enum_name(source): item["x-enumName"] = name
        item.update(self.constraints)
        return item

    def to_schema(self, ref_template: str = "#/$defs/{name}") -> dict[str, Any]:
        """Render an OpenAPI / JSON Schema property fragment."""
        item = self._item_schema(ref_template)
        schema = {"type": "array", "items": item, **self.array_constraints} if self.is_array else item

        if self.description: schema["description"] = self.description
        if self.example is not MISSING: schema["example"] = self.example
        if self.default is not MISSING: schema["default"] = _jsonable(self.default)
        if self.deprecated: schema["deprecated"] = True
        return schema


def plain_value(value: Any) -> Any:
    """Nested DTO and model instances as plain dicts, for failure output and serialization."""
    if isinstance(value, list): return [plain_value(v) for v in value]
    if isinstance(value, BaseModel): return value.model_dump()
    if not isinstance(value, type) and callable(getattr(value, "to_dict", None)): return value.to_dict()
    return value


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum): return value.value
    if isinstance(value, (list, tuple)): return [_jsonable(v) for v in value]
    return value


@dataclass(frozen=True, slots=True)
class FieldOutcome:
    """Result of running one descriptor against one value."""
    field: str
    value: Any
    failures: tuple[ValidationFailure, ...] = ()

    @property
    def ok(self) -> bool: return not self.failures


@dataclass(frozen=True, slots=True, eq=False)
class FieldDescriptor:
    """Ordered pipeline: coerce -> transform* -> validate* (+ metadata)."""
    kind: FieldKind
    coercion: CoercionRule | None = None
    transforms: tuple[Transform, ...] = ()
    validators: tuple[AtomicValidator, ...] = ()
    metadata: MetadataFragment | None = None
    required: bool = True
    is_array: bool = False
    sensitive: bool = False
    default: Any = MISSING

    @property
    def plan(self) -> tuple[tuple[str, str], ...]:
        """Ordered (stage, step) pairs the engine executes."""
        steps: list[tuple[str, str]] = []
        if self.coercion is not None: steps.append(("coerce", self.coercion.rule))
        steps.extend(("transform", t.name) for t in self.transforms)
        steps.extend(("validate", v.constraint_name) for v in self.validators)
        if self.metadata is not None: steps.append(("metadata", self.metadata.declared_type))
        return tuple(steps)

    def as_optional(self, default: Any = MISSING) -> FieldDescriptor:
        """New descriptor that accepts an absent value (optionally filling a default)."""
        metadata = self.metadata
        if metadata is not None:
            metadata = replace(metadata, required=False, default=metadata.default if default is MISSING else default)
        return replace(self, required=False, metadata=metadata, default=default)

    def run(self, field: str, value: Any = MISSING, mode: ValidationMode = ValidationMode.FAIL_FAST) -> FieldOutcome:
        """Run the pipeline against one raw value."""
        if value is MISSING:
            if not self.required:
                return FieldOutcome(field, copy.deepcopy(self.default))
            return FieldOutcome(field, MISSING, (ValidationFailure(field=field, rule="required",
                message=f"{field} should not be empty", code=ErrorCode.E2001_REQUIRED_FIELD_MISSING),))

        if self.coercion is not None:
            coerced = self.coercion.coerce(value)
            if coerced.is_err():
                return FieldOutcome(field, value, (self._coercion_failure(field, value, coerced.unwrap_err()),))
            value = coerced.unwrap()

        for transform in self.transforms:
            value = transform(value)

        failures: list[ValidationFailure] = []
        for validator in self.validators:
            result = validator.validate_in(value, mode)
            if result.is_valid: continue
            failures.append(self._failure(field, value, validator, result))
            if mode == ValidationMode.FAIL_FAST: break

        return FieldOutcome(field, value, tuple(failures))

    def _coercion_failure(self, field: str, value: Any, error) -> ValidationFailure:
        index = error.metadata.get("index")
        offending = value[index] if index is not None else value
        failure = ValidationFailure(field=field, rule=self.coercion.rule, message=f"{field}: {error.message}",
            value=offending, index=index, code=error.code, coercion=True)
        return failure.redact() if self.sensitive else failure

    def _failure(self, field: str, value: Any, validator: AtomicValidator, result: ValidationResult) -> ValidationFailure:
        offending = value[result.index] if result.index is not None else value
        children = tuple((result.metadata or {}).get("children", ()))
        failure = ValidationFailure(
            field=field,
            rule=result.constraint or validator.constraint_name,
            message=(result.error_message or "{field} is invalid").replace("{field}", field),
            value=None if children else plain_value(offending),
            index=result.index,
            code=result.error_code or ErrorCode.E2000_VALIDATION_GENERIC,
            children=children,
        )
        return failure.redact() if self.sensitive else failure

    # ------------------------------------------------------------------
    # Pydantic integration: usable as Annotated metadata on a BaseModel
    # ------------------------------------------------------------------

    def __get_pydantic_core_schema__(self, source_type: Any, handler: GetCoreSchemaHandler) -> CoreSchema:
        def validate(value: Any, info: core_schema.ValidationInfo) -> Any:
            outcome = self.run(info.field_name or "value", MISSING if value is None else value)
            if outcome.failures:
                raise ValueError("; ".join(f.message for f in outcome.failures))
            return None if outcome.value is MISSING else outcome.value

        return core_schema.with_info_plain_validator_function(validate)

    def __get_pydantic_json_schema__(self, schema: CoreSchema, handler: GetJsonSchemaHandler) -> JsonSchemaValue:
        return self.metadata.to_schema() if self.metadata is not None else {}
