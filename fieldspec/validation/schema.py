"""DTO Definitions

A Dto subclass declares its fields as class attributes holding
FieldDescriptors. The descriptors are collected by field name when the class
is defined (inherited fields included) and are the single source of truth
for parsing, validation and the published JSON schema.

Parse-don't-validate: ``parse`` either returns an instance built from the
coerced and transformed values or raises ValidationError.

Usage:
    class CreateProductDto(Dto):
        _validation_config = ValidationConfig(extra="forbid")

        name = string_field(max_length=100)
        price = number_field(minimum=0)
        tags = string_field_optional(each=True)

    product = CreateProductDto.parse({"name": " Lamp ", "price": "12.5"})
    product.name   # "Lamp"
    product.price  # 12.5
"""
from __future__ import annotations

from typing import Any, ClassVar, Mapping, Self

from pydantic import BaseModel

from fieldspec.config import get_settings
from fieldspec.errors import Err, ErrorCode, Ok, Result
from fieldspec.logging import validation_logger

from .descriptor import MISSING, FieldDescriptor, plain_value
from .errors import ValidationConfig, ValidationError, ValidationFailure, ValidationMode, create_accumulator

logger = validation_logger()


class Dto:
    """Base class for data-transfer objects built from field descriptors.

    A key counts as present when it is in the payload and its value is not
    None. Unknown keys are ignored unless the class config sets
    ``extra="forbid"``.
    """

    _validation_config: ClassVar[ValidationConfig | None] = None
    _descriptors: ClassVar[dict[str, FieldDescriptor]] = {}
    _sensitive_fields: ClassVar[frozenset[str]] = frozenset()

    def __init_subclass__(cls, **kwargs):
        """Collect field descriptors (base classes first) and sensitive fields."""
        super().__init_subclass__(**kwargs)
        descriptors: dict[str, FieldDescriptor] = {}
        for klass in reversed(cls.__mro__):
            descriptors.update({name: value for name, value in vars(klass).items() if isinstance(value, FieldDescriptor)})
        cls._descriptors = descriptors
        cls._sensitive_fields = frozenset(name for name, d in descriptors.items() if d.sensitive)

    def __init__(self, **values: Any):
        for name in self._descriptors:
            object.__setattr__(self, name, values.get(name))

    def __repr__(self) -> str:
        shown = ", ".join(f"{name}={'[REDACTED]' if name in self._sensitive_fields else repr(getattr(self, name))}"
            for name in self._descriptors)
        return f"{type(self).__name__}({shown})"

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self): return NotImplemented
        return self.to_dict() == other.to_dict()

    @classmethod
    def fields(cls) -> dict[str, FieldDescriptor]:
        return dict(cls._descriptors)

    @classmethod
    def _mode(cls, mode: ValidationMode | str | None) -> tuple[ValidationMode, int]:
        """Explicit mode wins, then the class config, then settings."""
        settings = get_settings()
        config = cls._validation_config
        max_errors = config.max_errors if config is not None else settings.MAX_VALIDATION_ERRORS
        if mode is not None: return ValidationMode(mode), max_errors
        if config is not None: return config.mode, max_errors
        return ValidationMode(settings.VALIDATION_MODE), max_errors

    @classmethod
    def collect_failures(cls, payload: Any, mode: ValidationMode | str | None = None
                         ) -> tuple[dict[str, Any], list[ValidationFailure]]:
        """Run every descriptor against the payload.

        Returns the processed values and the failures (empty when valid).
        """
        resolved_mode, max_errors = cls._mode(mode)
        if not isinstance(payload, Mapping):
            return {}, [ValidationFailure(field="$", rule="object", message=f"{cls.__name__} must be an object",
                value=payload, code=ErrorCode.E2004_INVALID_TYPE)]

        accumulator = create_accumulator(resolved_mode, max_errors)
        values: dict[str, Any] = {}

        if cls._validation_config is not None and cls._validation_config.extra == "forbid":
            for key in payload:
                if key in cls._descriptors: continue
                failure = ValidationFailure(field=str(key), rule="unknown_field", message=f"property {key} should not exist",
                    value=payload[key], code=ErrorCode.E2005_CONSTRAINT_VIOLATION)
                if not accumulator.add_error(failure): return values, accumulator.get_errors()

        for name, descriptor in cls._descriptors.items():
            raw = payload.get(name)
            outcome = descriptor.run(name, MISSING if raw is None else raw, resolved_mode)
            values[name] = None if outcome.value is MISSING else outcome.value
            for failure in outcome.failures:
                if not accumulator.add_error(failure): return values, accumulator.get_errors()

        return values, accumulator.get_errors()

    @classmethod
    def parse(cls, payload: Any, *, mode: ValidationMode | str | None = None) -> Self:
        """Parse a payload into a validated instance.

        Raises ValidationError if the payload is invalid.
        """
        values, failures = cls.collect_failures(payload, mode)
        if failures:
            resolved_mode, _ = cls._mode(mode)
            logger.debug("dto_parse_failed", dto=cls.__name__, mode=resolved_mode.value, error_count=len(failures),
                fields=[f.path for f in failures])
            raise ValidationError(message=f"{cls.__name__} validation failed", failures=failures, mode=resolved_mode,
                sensitive_fields=cls._sensitive_fields)
        return cls(**values)

    @classmethod
    def parse_result(cls, payload: Any, *, mode: ValidationMode | str | None = None) -> Result[Self, ValidationError]:
        """Parse data returning Result type for monadic error handling."""
        try: return Ok(cls.parse(payload, mode=mode))
        except ValidationError as e: return Err(e)

    @classmethod
    def json_schema(cls, ref_template: str = "#/$defs/{name}", _seen: set[str] | None = None) -> dict[str, Any]:
        """Aggregate the fields' metadata fragments into one object schema.

        Fields built with swagger=False are omitted. Nested translation
        types are emitted under ``$defs``, each once; self and mutual
        references render as ``$ref`` only.
        """
        seen = set() if _seen is None else _seen
        properties: dict[str, Any] = {}
        required: list[str] = []
        definitions: dict[str, Any] = {}

        for name, descriptor in cls._descriptors.items():
            if (metadata := descriptor.metadata) is None: continue
            properties[name] = metadata.to_schema(ref_template)
            if metadata.required: required.append(name)
            if (nested := metadata.nested_type) is not None:
                definitions.update(_definitions(nested, ref_template, seen))

        schema: dict[str, Any] = {"title": cls.__name__, "type": "object", "properties": properties}
        if required: schema["required"] = required
        if cls._validation_config is not None and cls._validation_config.extra == "forbid":
            schema["additionalProperties"] = False
        if definitions: schema["$defs"] = definitions
        return schema

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {name: plain_value(getattr(self, name)) for name in self._descriptors}


def _definitions(target: type, ref_template: str, seen: set[str]) -> dict[str, Any]:
    """Schema definitions for a nested element type and everything it references.

    Types already in ``seen`` are skipped, which ends circular references.
    """
    name = getattr(target, "__name__", str(target))
    if name in seen: return {}
    seen.add(name)
    if isinstance(target, type) and issubclass(target, Dto):
        schema = target.json_schema(ref_template, seen)
    elif isinstance(target, type) and issubclass(target, BaseModel):
        schema = target.model_json_schema(ref_template=ref_template)
    else:
        return {name: {"type": "object"}}
    nested = schema.pop("$defs", {})
    return {name: schema, **nested}
