"""Field Builders

One factory per field kind. Each builder takes a per-kind options record
(or the same options as keyword arguments) and returns an immutable
FieldDescriptor composed in a fixed order: coercion, transforms, validators,
metadata.

Contradictory options raise ConfigurationError when the descriptor is built,
which happens at DTO class definition, so misconfiguration surfaces at
import time instead of on a request.

Usage:
    class CreateUserDto(Dto):
        first_name = string_field(min_length=1, max_length=50)
        email = email_field()
        age = number_field_optional(minimum=0, is_int=True)
        role = enum_field(lambda: RoleType)
        titles = translations_field(lambda: TitleTranslationDto)
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Any, Callable, ClassVar, Sequence

import phonenumbers

from fieldspec.config import get_settings
from fieldspec.constants import PASSWORD_PATTERN, supported_language_count
from fieldspec.logging import validation_logger

from .coercion import ToDateTime, ToNumber
from .descriptor import MISSING, FieldDescriptor, FieldKind, MetadataFragment
from .errors import ConfigurationError
from .lazy import Lazy
from .transforms import (
    Transform,
    nested_instances,
    phone_number_serializer,
    to_array,
    to_boolean,
    to_lower_case,
    to_upper_case,
    trim,
)
from .validators import (
    ArrayNotEmpty,
    AtomicValidator,
    Each,
    EmailValidator,
    IsBoolean,
    IsDate,
    IsEnum,
    IsInteger,
    IsNumber,
    IsString,
    ListLength,
    NonEmpty,
    NumericRange,
    PhoneValidator,
    Positive,
    RegexPattern,
    StringLength,
    URLValidator,
    UUIDValidator,
    ValidateNested,
)

logger = validation_logger()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ============================================================================
# Options
# ============================================================================

@dataclass(frozen=True)
class FieldOptions:
    """Options shared by every kind.

    swagger=False suppresses metadata emission only; validation and
    transforms still run.
    """
    kind: ClassVar[FieldKind]

    swagger: bool = True
    description: str | None = None
    example: Any = MISSING
    deprecated: bool = False

    def _fail(self, message: str, option: str | None = None):
        raise ConfigurationError(message, kind=self.kind.value, option=option)


@dataclass(frozen=True)
class StringFieldOptions(FieldOptions):
    kind: ClassVar[FieldKind] = FieldKind.STRING

    min_length: int | None = None
    max_length: int | None = None
    to_lower_case: bool = False
    to_upper_case: bool = False
    each: bool = False

    def __post_init__(self):
        for name in ("min_length", "max_length"):
            value = getattr(self, name)
            if value is not None and (not _is_int(value) or value < 0):
                self._fail(f"{name} must be a non-negative integer, got {value!r}", name)
        if self.min_length is not None and self.max_length is not None and self.min_length > self.max_length:
            self._fail(f"min_length ({self.min_length}) is greater than max_length ({self.max_length})", "min_length")
        if self.to_lower_case and self.to_upper_case:
            self._fail("to_lower_case and to_upper_case are mutually exclusive", "to_upper_case")


@dataclass(frozen=True)
class PasswordFieldOptions(StringFieldOptions):
    kind: ClassVar[FieldKind] = FieldKind.PASSWORD

    pattern: str = PASSWORD_PATTERN

    def __post_init__(self):
        super().__post_init__()
        try:
            re.compile(self.pattern)
        except (re.error, TypeError) as exc:
            raise ConfigurationError(f"pattern does not compile: {exc}", kind=self.kind.value, option="pattern") from exc


@dataclass(frozen=True)
class EmailFieldOptions(StringFieldOptions):
    kind: ClassVar[FieldKind] = FieldKind.EMAIL

    to_lower_case: bool = True


@dataclass(frozen=True)
class URLFieldOptions(StringFieldOptions):
    kind: ClassVar[FieldKind] = FieldKind.URL

    allowed_schemes: tuple[str, ...] = ("http", "https")
    require_tld: bool = True

    def __post_init__(self):
        super().__post_init__()
        if not self.allowed_schemes:
            self._fail("allowed_schemes must not be empty", "allowed_schemes")


@dataclass(frozen=True)
class NumberFieldOptions(FieldOptions):
    kind: ClassVar[FieldKind] = FieldKind.NUMBER

    each: bool = False
    minimum: int | float | None = None
    maximum: int | float | None = None
    is_int: bool = False
    is_positive: bool = False

    def __post_init__(self):
        for name in ("minimum", "maximum"):
            value = getattr(self, name)
            if value is not None and not _is_number(value):
                self._fail(f"{name} must be a number, got {value!r}", name)
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            self._fail(f"minimum ({self.minimum}) is greater than maximum ({self.maximum})", "minimum")
        if self.is_positive and self.minimum is not None and self.minimum < 0:
            self._fail(f"is_positive contradicts negative minimum ({self.minimum})", "minimum")
        if self.is_positive and self.maximum is not None and self.maximum <= 0:
            self._fail(f"is_positive contradicts maximum ({self.maximum})", "maximum")


@dataclass(frozen=True)
class BooleanFieldOptions(FieldOptions):
    kind: ClassVar[FieldKind] = FieldKind.BOOLEAN

    each: bool = False


@dataclass(frozen=True)
class EnumFieldOptions(FieldOptions):
    kind: ClassVar[FieldKind] = FieldKind.ENUM

    each: bool = False
    enum_name: str | None = None


@dataclass(frozen=True)
class PhoneFieldOptions(FieldOptions):
    kind: ClassVar[FieldKind] = FieldKind.PHONE

    region: str | None = None

    def __post_init__(self):
        if self.region is not None and self.region not in phonenumbers.SUPPORTED_REGIONS:
            self._fail(f"unknown phone region {self.region!r}", "region")


@dataclass(frozen=True)
class UUIDFieldOptions(FieldOptions):
    kind: ClassVar[FieldKind] = FieldKind.UUID

    is_array: bool = False
    version: int | None = 4

    def __post_init__(self):
        if self.version is not None and self.version not in (1, 2, 3, 4, 5):
            self._fail(f"unsupported UUID version {self.version!r}", "version")


@dataclass(frozen=True)
class DateFieldOptions(FieldOptions):
    kind: ClassVar[FieldKind] = FieldKind.DATE


@dataclass(frozen=True)
class TranslationsFieldOptions(FieldOptions):
    kind: ClassVar[FieldKind] = FieldKind.TRANSLATION_SET

    language_count: int | None = None

    def __post_init__(self):
        if self.language_count is not None and (not _is_int(self.language_count) or self.language_count < 1):
            self._fail(f"language_count must be a positive integer, got {self.language_count!r}", "language_count")


# ============================================================================
# Composition helpers
# ============================================================================

def _resolve(cls: type[FieldOptions], options: FieldOptions | None, overrides: dict[str, Any]) -> Any:
    """Build the options record, converting misuse into ConfigurationError."""
    try:
        if options is None:
            return cls(**overrides)
        if not isinstance(options, cls):
            raise ConfigurationError(f"{cls.kind.value} field expects {cls.__name__}, got {type(options).__name__}",
                kind=cls.kind.value)
        return replace(options, **overrides) if overrides else options
    except TypeError as exc:
        error = ConfigurationError(f"invalid option for {cls.kind.value} field: {exc}", kind=cls.kind.value)
        logger.error("field_configuration_invalid", kind=error.kind, option=error.option, error=error.message)
        raise error from exc
    except ConfigurationError as exc:
        logger.error("field_configuration_invalid", kind=exc.kind, option=exc.option, error=exc.message)
        raise


def _lazy(accessor: Callable[[], Any], kind: FieldKind, purpose: str) -> Lazy:
    try:
        return Lazy(accessor, purpose)
    except ConfigurationError as exc:
        exc.kind = kind.value
        logger.error("field_configuration_invalid", kind=kind.value, option=purpose, error=exc.message)
        raise


def _metadata(opts: FieldOptions, declared_type: str, *, example: Any = MISSING, **facts) -> MetadataFragment | None:
    if not opts.swagger:
        return None
    return MetadataFragment(declared_type=declared_type, description=opts.description, deprecated=opts.deprecated,
        example=opts.example if opts.example is not MISSING else example, **facts)


def _arrayed(transforms: list[Transform], validators: list[AtomicValidator], each: bool):
    """Make a scalar pipeline element-wise: wrap scalars, lift transforms, wrap validators in Each."""
    if not each:
        return tuple(transforms), tuple(validators)
    return (to_array, *(t.per_element() for t in transforms)), tuple(Each(v) for v in validators)


def _built(descriptor: FieldDescriptor) -> FieldDescriptor:
    logger.debug("field_descriptor_built", kind=descriptor.kind.value, required=descriptor.required,
        is_array=descriptor.is_array, plan=[f"{stage}:{step}" for stage, step in descriptor.plan])
    return descriptor


def _string_descriptor(kind: FieldKind, opts: StringFieldOptions, extra: Sequence[AtomicValidator] = (), *,
                       fmt: str | None = None, constraints: dict[str, Any] | None = None,
                       sensitive: bool = False) -> FieldDescriptor:
    transforms: list[Transform] = [trim]
    if opts.to_lower_case: transforms.append(to_lower_case)
    if opts.to_upper_case: transforms.append(to_upper_case)

    validators: list[AtomicValidator] = [NonEmpty(), IsString()]
    if opts.min_length is not None or opts.max_length is not None:
        validators.append(StringLength(opts.min_length, opts.max_length))
    validators.extend(extra)

    facts = dict(constraints or {})
    if opts.min_length is not None: facts["minLength"] = opts.min_length
    if opts.max_length is not None: facts["maxLength"] = opts.max_length

    steps, checks = _arrayed(transforms, validators, opts.each)
    return _built(FieldDescriptor(
        kind=kind,
        transforms=steps,
        validators=checks,
        metadata=_metadata(opts, "string", is_array=opts.each, format=fmt, constraints=facts),
        is_array=opts.each,
        sensitive=sensitive,
    ))


# ============================================================================
# Builders
# ============================================================================

def string_field(options: StringFieldOptions | None = None, /, **kwargs) -> FieldDescriptor:
    """Trimmed string, optionally case-normalized and length-bounded."""
    opts = _resolve(StringFieldOptions, options, kwargs)
    return _string_descriptor(FieldKind.STRING, opts)


def password_field(options: PasswordFieldOptions | None = None, /, **kwargs) -> FieldDescriptor:
    """String restricted to the password character set. Values are redacted in failures."""
    opts = _resolve(PasswordFieldOptions, options, kwargs)
    return _string_descriptor(FieldKind.PASSWORD, opts, (RegexPattern(opts.pattern),), fmt="password",
        constraints={"pattern": opts.pattern}, sensitive=True)


def email_field(options: EmailFieldOptions | None = None, /, **kwargs) -> FieldDescriptor:
    opts = _resolve(EmailFieldOptions, options, kwargs)
    return _string_descriptor(FieldKind.EMAIL, opts, (EmailValidator(),), fmt="email")


def url_field(options: URLFieldOptions | None = None, /, **kwargs) -> FieldDescriptor:
    opts = _resolve(URLFieldOptions, options, kwargs)
    validator = URLValidator(allowed_schemes=opts.allowed_schemes, require_tld=opts.require_tld)
    return _string_descriptor(FieldKind.URL, opts, (validator,), fmt="uri")


def number_field(options: NumberFieldOptions | None = None, /, **kwargs) -> FieldDescriptor:
    """Number coerced from numeric strings.

    Bounds are inclusive and applied whenever given, including 0.
    """
    opts = _resolve(NumberFieldOptions, options, kwargs)

    validators: list[AtomicValidator] = [IsInteger() if opts.is_int else IsNumber()]
    if opts.minimum is not None or opts.maximum is not None:
        validators.append(NumericRange(opts.minimum, opts.maximum))
    if opts.is_positive:
        validators.append(Positive())

    facts: dict[str, Any] = {}
    if opts.minimum is not None: facts["minimum"] = opts.minimum
    if opts.maximum is not None: facts["maximum"] = opts.maximum
    if opts.is_positive: facts["exclusiveMinimum"] = 0

    steps, checks = _arrayed([], validators, opts.each)
    return _built(FieldDescriptor(
        kind=FieldKind.NUMBER,
        coercion=ToNumber(),
        transforms=steps,
        validators=checks,
        metadata=_metadata(opts, "integer" if opts.is_int else "number", example=1 if opts.is_int else 1.2,
            is_array=opts.each, constraints=facts),
        is_array=opts.each,
    ))


def boolean_field(options: BooleanFieldOptions | None = None, /, **kwargs) -> FieldDescriptor:
    """Boolean; the strings "true"/"false" and the numbers 1/0 are accepted."""
    opts = _resolve(BooleanFieldOptions, options, kwargs)
    steps, checks = _arrayed([to_boolean], [IsBoolean()], opts.each)
    return _built(FieldDescriptor(
        kind=FieldKind.BOOLEAN,
        transforms=steps,
        validators=checks,
        metadata=_metadata(opts, "boolean", is_array=opts.each),
        is_array=opts.each,
    ))


def enum_field(get_enum: Callable[[], Any], options: EnumFieldOptions | None = None, /, **kwargs) -> FieldDescriptor:
    """Membership in an enum resolved lazily on first validation or schema render.

    ``get_enum`` returns an Enum class, a mapping (values are used) or an iterable of values.
    """
    opts = _resolve(EnumFieldOptions, options, kwargs)
    source = _lazy(get_enum, FieldKind.ENUM, "enum")
    steps, checks = _arrayed([], [IsEnum(source)], opts.each)
    return _built(FieldDescriptor(
        kind=FieldKind.ENUM,
        transforms=steps,
        validators=checks,
        metadata=_metadata(opts, "string", is_array=opts.each, enum=source, enum_name=opts.enum_name),
        is_array=opts.each,
    ))


def phone_field(options: PhoneFieldOptions | None = None, /, **kwargs) -> FieldDescriptor:
    """Phone number normalized to E.164 before validation.

    Numbers without a +country prefix use ``region``, falling back to
    DEFAULT_PHONE_REGION from settings.
    """
    opts = _resolve(PhoneFieldOptions, options, kwargs)
    region = opts.region or get_settings().DEFAULT_PHONE_REGION
    return _built(FieldDescriptor(
        kind=FieldKind.PHONE,
        transforms=(phone_number_serializer(region),),
        validators=(PhoneValidator(region),),
        metadata=_metadata(opts, "string", example="+14155552671"),
    ))


def uuid_field(options: UUIDFieldOptions | None = None, /, **kwargs) -> FieldDescriptor:
    opts = _resolve(UUIDFieldOptions, options, kwargs)
    check = UUIDValidator(opts.version)
    if opts.is_array:
        steps, checks = (to_array,), (Each(check), ArrayNotEmpty())
    else:
        steps, checks = (), (check,)
    return _built(FieldDescriptor(
        kind=FieldKind.UUID,
        transforms=steps,
        validators=checks,
        metadata=_metadata(opts, "string", format="uuid", is_array=opts.is_array),
        is_array=opts.is_array,
    ))


def date_field(options: DateFieldOptions | None = None, /, **kwargs) -> FieldDescriptor:
    """ISO8601 date-time coerced to datetime."""
    opts = _resolve(DateFieldOptions, options, kwargs)
    return _built(FieldDescriptor(
        kind=FieldKind.DATE,
        coercion=ToDateTime(),
        validators=(IsDate(),),
        metadata=_metadata(opts, "string", format="date-time"),
    ))


def translations_field(get_type: Callable[[], type], options: TranslationsFieldOptions | None = None, /,
                       **kwargs) -> FieldDescriptor:
    """One nested translation per supported language.

    The array length must equal ``language_count`` (default: number of
    SUPPORTED_LANGUAGES) and every element is validated as the lazily
    resolved DTO type. Valid elements are replaced by instances of that type.
    """
    opts = _resolve(TranslationsFieldOptions, options, kwargs)
    count = opts.language_count if opts.language_count is not None else supported_language_count()
    target = _lazy(get_type, FieldKind.TRANSLATION_SET, "translation_type")
    return _built(FieldDescriptor(
        kind=FieldKind.TRANSLATION_SET,
        transforms=(nested_instances(target),),
        validators=(ListLength(count, count), ValidateNested(target)),
        metadata=_metadata(opts, "object", is_array=True, ref=target,
            array_constraints={"minItems": count, "maxItems": count}),
        is_array=True,
    ))


# ============================================================================
# Optionality
# ============================================================================

def optional(builder: Callable[..., FieldDescriptor] | FieldDescriptor, *args, default: Any = MISSING,
             **options) -> FieldDescriptor:
    """Optional variant of any builder (or of an already built descriptor).

    An absent value skips every step and is valid; ``default`` fills it in.
    Metadata is published with required=False. The base descriptor is never modified.
    """
    if isinstance(builder, FieldDescriptor):
        if args or options:
            raise ConfigurationError("options cannot be applied to an already built descriptor", kind=builder.kind.value)
        return builder.as_optional(default)
    if not callable(builder):
        raise ConfigurationError(f"optional() expects a field builder, got {type(builder).__name__}")
    return builder(*args, **options).as_optional(default)


def string_field_optional(options: StringFieldOptions | None = None, /, *, default: Any = MISSING, **kwargs):
    return optional(string_field, options, default=default, **kwargs)


def password_field_optional(options: PasswordFieldOptions | None = None, /, *, default: Any = MISSING, **kwargs):
    return optional(password_field, options, default=default, **kwargs)


def number_field_optional(options: NumberFieldOptions | None = None, /, *, default: Any = MISSING, **kwargs):
    return optional(number_field, options, default=default, **kwargs)


def boolean_field_optional(options: BooleanFieldOptions | None = None, /, *, default: Any = MISSING, **kwargs):
    return optional(boolean_field, options, default=default, **kwargs)


def enum_field_optional(get_enum: Callable[[], Any], options: EnumFieldOptions | None = None, /, *,
                        default: Any = MISSING, **kwargs):
    return optional(enum_field, get_enum, options, default=default, **kwargs)


def email_field_optional(options: EmailFieldOptions | None = None, /, *, default: Any = MISSING, **kwargs):
    return optional(email_field, options, default=default, **kwargs)


def phone_field_optional(options: PhoneFieldOptions | None = None, /, *, default: Any = MISSING, **kwargs):
    return optional(phone_field, options, default=default, **kwargs)


def uuid_field_optional(options: UUIDFieldOptions | None = None, /, *, default: Any = MISSING, **kwargs):
    return optional(uuid_field, options, default=default, **kwargs)


def url_field_optional(options: URLFieldOptions | None = None, /, *, default: Any = MISSING, **kwargs):
    return optional(url_field, options, default=default, **kwargs)


def date_field_optional(options: DateFieldOptions | None = None, /, *, default: Any = MISSING, **kwargs):
    return optional(date_field, options, default=default, **kwargs)


def translations_field_optional(get_type: Callable[[], type], options: TranslationsFieldOptions | None = None, /, *,
                                default: Any = MISSING, **kwargs):
    return optional(translations_field, get_type, options, default=default, **kwargs)
