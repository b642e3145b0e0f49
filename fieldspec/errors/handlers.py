"""FastAPI Exception Handlers

Integrates the error types and the validation system with FastAPI's
exception handling. Rejected payloads are rendered as HTTP 422 with the
failure list under ``message``:

    {"message": [{"field": "email", "rule": "is_email", "message": "email must be an email"}],
     "success": false}
"""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fieldspec.config import get_settings
from fieldspec.logging import get_logger
from fieldspec.validation.errors import ConfigurationError, ValidationError, ValidationFailure

from .types import AppError, ErrorCode, ErrorContext

log = get_logger("fieldspec.errors.handlers")

UNPROCESSABLE_ENTITY = 422


class AppErrorException(Exception):
    """Exception wrapper for AppError.

    Use this when you need to raise an AppError in code that
    doesn't use the Result monad (e.g., FastAPI dependencies).
    """

    def __init__(self, error: AppError):
        self.error = error
        super().__init__(str(error))


def result_to_response(error: AppError, status_code: int | None = None) -> JSONResponse:
    """Convert AppError to FastAPI JSONResponse."""
    status_code = status_code or error.code.http_status

    log_method = log.warning if status_code < 500 else log.error
    log_method(
        "error_response",
        error_code=error.code.name,
        error_code_num=error.code.value,
        message=error.message,
        category=error.code.category,
        correlation_id=error.context.correlation_id,
        origin=error.context.origin,
        metadata=error.metadata,
    )

    return JSONResponse(status_code=status_code, content=error.to_dict())


def failures_to_response(request: Request, failures: list[ValidationFailure], origin: str) -> JSONResponse:
    """Render validation failures in the unprocessable-entity shape."""
    log.warning(
        "validation_rejected",
        origin=origin,
        path=request.url.path,
        correlation_id=request.headers.get("X-Correlation-ID", ""),
        error_count=len(failures),
        rules=[f.rule for f in failures],
    )
    return JSONResponse(
        status_code=UNPROCESSABLE_ENTITY,
        content={"message": [f.to_dict() for f in failures], "success": False},
    )


async def app_error_handler(request: Request, exc: AppErrorException) -> JSONResponse:
    """Handle AppErrorException raised in route handlers."""
    error = exc.error.with_context(
        request_id=request.headers.get("X-Request-ID"),
        correlation_id=request.headers.get("X-Correlation-ID") or exc.error.context.correlation_id,
    )
    return result_to_response(error)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle ValidationError raised by DTO parsing and the request boundaries."""
    return failures_to_response(request, exc.redacted(), origin="validation")


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle FastAPI's own request validation (pydantic models using field descriptors)."""
    failures = [ValidationFailure.from_pydantic_error(err) for err in exc.errors()]
    return failures_to_response(request, failures, origin="request_validation")


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    """A lazy accessor failed on first use; this is a server fault, not a client one."""
    error = exc.to_app_error().with_context(
        correlation_id=request.headers.get("X-Correlation-ID", ""),
        origin="configuration",
    )
    return result_to_response(error)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle standard HTTP exceptions with structured error response."""
    status_code = exc.status_code
    code_map = {
        400: ErrorCode.E2000_VALIDATION_GENERIC,
        413: ErrorCode.E2020_PAYLOAD_TOO_LARGE,
        422: ErrorCode.E2000_VALIDATION_GENERIC,
    }

    code = code_map.get(status_code)
    if code is None:
        code = ErrorCode.E9001_UNEXPECTED_ERROR if status_code >= 500 else ErrorCode.E9000_INTERNAL_GENERIC

    error = AppError(
        code=code,
        message=str(exc.detail) if exc.detail else f"HTTP {status_code}",
        context=ErrorContext(
            correlation_id=request.headers.get("X-Correlation-ID", ""),
            origin="http",
        ),
    )
    return result_to_response(error, status_code)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unhandled exceptions.

    Converts to internal error and logs full traceback. The exception type
    and message are only returned to the client when APP_DEBUG is on.
    """
    error = AppError(
        code=ErrorCode.E9001_UNEXPECTED_ERROR,
        message="An unexpected error occurred",
        context=ErrorContext(
            correlation_id=request.headers.get("X-Correlation-ID", ""),
            origin="unhandled",
        ),
    )
    if get_settings().APP_DEBUG:
        error = error.with_metadata(error_type=type(exc).__name__, error_message=str(exc))

    log.exception(
        "unhandled_exception",
        error_type=type(exc).__name__,
        error_message=str(exc),
        correlation_id=error.context.correlation_id,
    )

    return result_to_response(error)


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on FastAPI app.

    Usage:
        app = FastAPI()
        register_error_handlers(app)
    """
    app.add_exception_handler(AppErrorException, app_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


def raise_error(error: AppError) -> None:
    """Raise AppError as exception.

    Use when you need to exit early from code that doesn't
    use the Result monad.
    """
    raise AppErrorException(error)


def raise_result(result) -> None:
    """Raise error if Result is Err, otherwise return."""
    if result.is_err():
        raise AppErrorException(result.unwrap_err())
