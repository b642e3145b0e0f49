from .page import PageDto, PageMetaDto, PageOptionsDto

__all__ = ["PageDto", "PageMetaDto", "PageOptionsDto"]
