from enum import Enum

from fieldspec.config import get_settings


class Order(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


PASSWORD_PATTERN = r"^[\d!#$%&*@A-Z^a-z]*$"


def supported_languages() -> list[str]:
    """Language codes a translation may carry, read from SUPPORTED_LANGUAGES.

    Pass it as an enum accessor: ``enum_field(supported_languages)``.
    """
    return list(get_settings().SUPPORTED_LANGUAGES)


def supported_language_count() -> int:
    """Number of translations a translation-set field must carry."""
    return get_settings().supported_language_count
