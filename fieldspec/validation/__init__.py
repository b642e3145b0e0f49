"""Declarative Field Specification System

Every DTO field is declared once, as a FieldDescriptor built by a per-kind
builder, and that one declaration drives input coercion, transforms,
validation and the published API schema.

Key Features:
- Builders for string, password, number, boolean, enum, email, phone, UUID,
  URL, date and translation-set fields, plus optional variants
- Atomic, total validators and transforms
- Explicit opt-in coercion (numbers, dates)
- Structured error accumulation (fail-fast or collect-all)
- OpenAPI / JSON Schema generation from field metadata
- FastAPI boundary dependencies for bodies and query strings

Usage:
    from fieldspec.validation import (
        Dto, string_field, email_field, number_field_optional,
        ValidationError, parse_ingress,
    )

    class CreateUserDto(Dto):
        name = string_field(max_length=50)
        email = email_field()
        age = number_field_optional(minimum=0, is_int=True)

    result = parse_ingress(CreateUserDto, payload)
    if result.is_err():
        return render(result.unwrap_err())
    user = result.unwrap()
"""

# Errors
from .errors import (
    ValidationMode,
    ValidationConfig,
    ValidationFailure,
    ValidationError,
    ConfigurationError,
    ValidationErrorAccumulator,
    FailFastAccumulator,
    CollectAllAccumulator,
    create_accumulator,
)

from .lazy import Lazy

# Primitive validators
from .validators import (
    ValidationResult,
    AtomicValidator,
    IsString,
    NonEmpty,
    StringLength,
    RegexPattern,
    IsNumber,
    IsInteger,
    NumericRange,
    Positive,
    IsBoolean,
    IsEnum,
    EmailValidator,
    UUIDValidator,
    URLValidator,
    PhoneValidator,
    IsDate,
    ListLength,
    ArrayNotEmpty,
    ValidateNested,
    Each,
    enum_values,
)

# Transforms
from .transforms import (
    Transform,
    trim,
    to_lower_case,
    to_upper_case,
    to_array,
    to_boolean,
    phone_number_serializer,
    nested_instances,
)

# Coercion
from .coercion import (
    CoercionRule,
    ToNumber,
    ToDateTime,
)

# Descriptors
from .descriptor import (
    FieldKind,
    MISSING,
    MetadataFragment,
    FieldOutcome,
    FieldDescriptor,
)

# Builders
from .fields import (
    FieldOptions,
    StringFieldOptions,
    PasswordFieldOptions,
    EmailFieldOptions,
    URLFieldOptions,
    NumberFieldOptions,
    BooleanFieldOptions,
    EnumFieldOptions,
    PhoneFieldOptions,
    UUIDFieldOptions,
    DateFieldOptions,
    TranslationsFieldOptions,
    string_field,
    password_field,
    number_field,
    boolean_field,
    enum_field,
    email_field,
    phone_field,
    uuid_field,
    url_field,
    date_field,
    translations_field,
    optional,
    string_field_optional,
    password_field_optional,
    number_field_optional,
    boolean_field_optional,
    enum_field_optional,
    email_field_optional,
    phone_field_optional,
    uuid_field_optional,
    url_field_optional,
    date_field_optional,
    translations_field_optional,
)

# DTOs
from .schema import Dto

# Generators
from .generators import (
    SchemaGenerator,
    OpenAPIGenerator,
    JSONSchemaGenerator,
    install_openapi_components,
)

# Boundaries
from .boundaries import (
    BoundaryValidator,
    parse_ingress,
    parse_batch,
    ValidatedBody,
    ValidatedQuery,
    validated_body,
    validated_query,
)

__all__ = [
    # Errors
    "ValidationMode",
    "ValidationConfig",
    "ValidationFailure",
    "ValidationError",
    "ConfigurationError",
    "ValidationErrorAccumulator",
    "FailFastAccumulator",
    "CollectAllAccumulator",
    "create_accumulator",
    "Lazy",
    # Validators
    "ValidationResult",
    "AtomicValidator",
    "IsString",
    "NonEmpty",
    "StringLength",
    "RegexPattern",
    "IsNumber",
    "IsInteger",
    "NumericRange",
    "Positive",
    "IsBoolean",
    "IsEnum",
    "EmailValidator",
    "UUIDValidator",
    "URLValidator",
    "PhoneValidator",
    "IsDate",
    "ListLength",
    "ArrayNotEmpty",
    "ValidateNested",
    "Each",
    "enum_values",
    # Transforms
    "Transform",
    "trim",
    "to_lower_case",
    "to_upper_case",
    "to_array",
    "to_boolean",
    "phone_number_serializer",
    "nested_instances",
    # Coercion
    "CoercionRule",
    "ToNumber",
    "ToDateTime",
    # Descriptors
    "FieldKind",
    "MISSING",
    "MetadataFragment",
    "FieldOutcome",
    "FieldDescriptor",
    # Builders
    "FieldOptions",
    "StringFieldOptions",
    "PasswordFieldOptions",
    "EmailFieldOptions",
    "URLFieldOptions",
    "NumberFieldOptions",
    "BooleanFieldOptions",
    "EnumFieldOptions",
    "PhoneFieldOptions",
    "UUIDFieldOptions",
    "DateFieldOptions",
    "TranslationsFieldOptions",
    "string_field",
    "password_field",
    "number_field",
    "boolean_field",
    "enum_field",
    "email_field",
    "phone_field",
    "uuid_field",
    "url_field",
    "date_field",
    "translations_field",
    "optional",
    "string_field_optional",
    "password_field_optional",
    "number_field_optional",
    "boolean_field_optional",
    "enum_field_optional",
    "email_field_optional",
    "phone_field_optional",
    "uuid_field_optional",
    "url_field_optional",
    "date_field_optional",
    "translations_field_optional",
    # DTOs
    "Dto",
    # Generators
    "SchemaGenerator",
    "OpenAPIGenerator",
    "JSONSchemaGenerator",
    "install_openapi_components",
    # Boundaries
    "BoundaryValidator",
    "parse_ingress",
    "parse_batch",
    "ValidatedBody",
    "ValidatedQuery",
    "validated_body",
    "validated_query",
]
