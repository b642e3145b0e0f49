"""Error Handling System

Result types and the error code taxonomy used across coercion, validation
and DTO parsing.

Usage:
    from fieldspec.errors import Ok, Err, Result, AppError, ErrorCode

    def coerce_page(raw: str) -> Result[int, AppError]:
        if not raw.isdigit():
            return Err(AppError(code=ErrorCode.E2004_INVALID_TYPE, message="page must be numeric"))
        return Ok(int(raw))

HTTP rendering lives in ``fieldspec.errors.handlers`` and is imported
explicitly by applications.
"""
from .types import (
    AppError,
    Err,
    ErrorCode,
    ErrorContext,
    Ok,
    Result,
)

__all__ = [
    "AppError",
    "Err",
    "ErrorCode",
    "ErrorContext",
    "Ok",
    "Result",
]
