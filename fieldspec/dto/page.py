"""Pagination DTOs

PageOptionsDto is parsed from the query string through field descriptors;
PageMetaDto and PageDto are response models serialized with camelCase keys.

Usage:
    @router.get("/items")
    async def list_items(options: PageOptionsDto = validated_query(PageOptionsDto)) -> PageDto[ItemDto]:
        items, total = await repo.page(skip=options.skip, take=options.take, order=options.order)
        return PageDto(data=items, meta=PageMetaDto.from_options(options, total))
"""
from __future__ import annotations

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from fieldspec.constants import Order
from fieldspec.validation import Dto, enum_field_optional, number_field_optional, string_field_optional

T = TypeVar("T")

MAX_TAKE = 50


class PageOptionsDto(Dto):
    """Paging, ordering and free-text search parameters."""

    order = enum_field_optional(lambda: Order, default=Order.ASC)
    page = number_field_optional(minimum=1, is_int=True, default=1)
    take = number_field_optional(minimum=1, maximum=MAX_TAKE, is_int=True, default=10)
    q = string_field_optional()

    @property
    def skip(self) -> int:
        return (int(self.page) - 1) * int(self.take)


class PageMetaDto(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    page: int
    take: int
    item_count: int
    page_count: int
    has_previous_page: bool
    has_next_page: bool

    @classmethod
    def from_options(cls, options: PageOptionsDto, item_count: int) -> PageMetaDto:
        page, take = int(options.page), int(options.take)
        page_count = math.ceil(item_count / take)
        return cls(
            page=page,
            take=take,
            item_count=item_count,
            page_count=page_count,
            has_previous_page=page > 1,
            has_next_page=page < page_count,
        )


class PageDto(BaseModel, Generic[T]):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    data: list[T]
    meta: PageMetaDto
