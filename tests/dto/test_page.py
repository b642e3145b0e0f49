"""Tests for the pagination DTOs."""

from __future__ import annotations

import pytest

from fieldspec.constants import Order
from fieldspec.dto import PageDto, PageMetaDto, PageOptionsDto
from fieldspec.validation import ValidationError


class TestPageOptionsDto:
    def test_defaults(self) -> None:
        options = PageOptionsDto.parse({})
        assert options.order is Order.ASC
        assert (options.page, options.take, options.skip) == (1, 10, 0)
        assert options.q is None

    def test_skip(self) -> None:
        assert PageOptionsDto.parse({"page": "3", "take": "25"}).skip == 50

    @pytest.mark.parametrize(
        ("payload", "rule"),
        [({"page": "0"}, "min"), ({"take": "100"}, "max"), ({"page": "1.5"}, "is_int"), ({"order": "up"}, "is_enum")],
    )
    def test_rejects(self, payload: dict, rule: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            PageOptionsDto.parse(payload)
        assert exc_info.value.first_error.rule == rule

    def test_schema(self) -> None:
        schema = PageOptionsDto.json_schema()
        assert "required" not in schema
        assert schema["properties"]["take"]["maximum"] == 50
        assert schema["properties"]["take"]["default"] == 10
        assert schema["properties"]["order"]["default"] == "ASC"
        assert schema["properties"]["order"]["enum"] == ["ASC", "DESC"]


class TestPageMetaDto:
    def test_from_options(self) -> None:
        meta = PageMetaDto.from_options(PageOptionsDto.parse({"page": "2", "take": "10"}), item_count=25)
        assert meta.page_count == 3
        assert meta.has_previous_page
        assert meta.has_next_page

    def test_camel_case_serialization(self) -> None:
        meta = PageMetaDto.from_options(PageOptionsDto.parse({}), item_count=0)
        dumped = meta.model_dump(by_alias=True)
        assert dumped["itemCount"] == 0
        assert dumped["hasNextPage"] is False

    def test_page_dto(self) -> None:
        meta = PageMetaDto.from_options(PageOptionsDto.parse({}), item_count=1)
        page = PageDto[str](data=["a"], meta=meta)
        assert page.model_dump(by_alias=True)["meta"]["pageCount"] == 1
