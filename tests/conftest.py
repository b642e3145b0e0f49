"""Shared pytest fixtures and sample DTOs for fieldspec tests."""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum

import pytest

from fieldspec.config import get_settings
from fieldspec.constants import supported_languages
from fieldspec.logging import configure_logging
from fieldspec.validation import (
    Dto,
    ValidationConfig,
    enum_field,
    enum_field_optional,
    number_field,
    password_field_optional,
    string_field,
    string_field_optional,
    translations_field,
)

configure_logging(level="WARNING")


class Color(str, Enum):
    RED = "red"
    GREEN = "green"


class CreateProductDto(Dto):
    """Payload for creating a product."""

    name = string_field(max_length=10)
    price = number_field(minimum=0)
    color = enum_field_optional(lambda: Color)
    password = password_field_optional()
    titles = translations_field(lambda: TitleTranslationDto, language_count=2)


class TitleTranslationDto(Dto):
    language_code = enum_field(supported_languages)
    title = string_field(max_length=20)


class StrictDto(Dto):
    _validation_config = ValidationConfig(extra="forbid")

    name = string_field()


class BaseEntityDto(Dto):
    id = string_field()


class NamedEntityDto(BaseEntityDto):
    label = string_field_optional(to_upper_case=True)


VALID_TITLES = [
    {"language_code": "en_US", "title": "Lamp"},
    {"language_code": "ru_RU", "title": "Lampa"},
]


def valid_product(**overrides) -> dict:
    """A payload accepted by CreateProductDto."""
    payload = {"name": "Lamp", "price": "12.5", "titles": VALID_TITLES}
    payload.update(overrides)
    return payload


@pytest.fixture
def reset_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    """Clear the cached settings before and after the test.

    Yields monkeypatch so tests can set environment variables first.
    """
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()
