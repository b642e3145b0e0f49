"""Value Transforms

Value-to-value normalizations applied after coercion and before validation.
Every transform is total: values it does not understand pass through
unchanged and are left for the validators to reject.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import phonenumbers
from phonenumbers import NumberParseException
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .lazy import Lazy


@dataclass(frozen=True, slots=True)
class Transform:
    """A named, pure value transform."""
    name: str
    fn: Callable[[Any], Any]

    def __call__(self, value: Any) -> Any: return self.fn(value)

    def per_element(self) -> Transform:
        """Lift a scalar transform so it applies to each element of a sequence."""
        fn = self.fn
        return Transform(f"each:{self.name}", lambda v: [fn(x) for x in v] if isinstance(v, (list, tuple)) else fn(v))


_trim = lambda v: v.strip() if isinstance(v, str) else v
_lower = lambda v: v.lower() if isinstance(v, str) else v
_upper = lambda v: v.upper() if isinstance(v, str) else v
_to_array = lambda v: list(v) if isinstance(v, (list, tuple)) else [v]


def _to_boolean(value: Any) -> Any:
    if isinstance(value, bool): return value
    if value == "true" or (isinstance(value, (int, float)) and value == 1): return True
    if value == "false" or (isinstance(value, (int, float)) and value == 0): return False
    return value


trim = Transform("trim", _trim)
to_lower_case = Transform("to_lower_case", _lower)
to_upper_case = Transform("to_upper_case", _upper)
to_array = Transform("to_array", _to_array)
to_boolean = Transform("to_boolean", _to_boolean)


def phone_number_serializer(region: str | None = None) -> Transform:
    """Reformat a phone number to E.164. Unparseable input passes through for the validator to reject."""

    def _normalize(value: Any) -> Any:
        if not isinstance(value, str): return value
        try:
            number = phonenumbers.parse(value, region)
        except NumberParseException:
            return value
        return phonenumbers.format_number(number, phonenumbers.PhoneNumberFormat.E164)

    return Transform("phone_number", _normalize)


def nested_instances(target: Lazy) -> Transform:
    """Replace each valid element with an instance of the lazily resolved DTO type.

    Elements are built from the nested descriptors' coerced and transformed
    values. Invalid elements stay as they are for the nested validator to report.
    """

    def _build(item: Any) -> Any:
        element_type = target.resolve()
        if isinstance(element_type, type) and isinstance(item, element_type):
            return item
        if hasattr(element_type, "collect_failures"):
            values, failures = element_type.collect_failures(item)
            return item if failures else element_type(**values)
        if isinstance(element_type, type) and issubclass(element_type, BaseModel):
            try:
                return element_type.model_validate(item)
            except PydanticValidationError:
                return item
        return item

    def _convert(value: Any) -> Any:
        return [_build(item) for item in value] if isinstance(value, (list, tuple)) else value

    return Transform("nested_instances", _convert)
