"""Validation at System Boundaries

Parse-don't-validate at API ingress: request bodies and query strings are
run through a DTO's field descriptors before a route handler sees them.
Rejected payloads raise ValidationError, which the registered error handlers
render as HTTP 422.
"""
from __future__ import annotations

import json
from typing import Any, Callable, Generic, TypeVar

from fastapi import Depends, Request

from fieldspec.errors import Err, ErrorCode, Ok, Result
from fieldspec.logging import api_logger

from .errors import ValidationError, ValidationFailure, ValidationMode
from .schema import Dto

S = TypeVar("S", bound=Dto)

log = api_logger()


# ============================================================================
# Boundary Validators
# ============================================================================

class BoundaryValidator(Generic[S]):
    """Stateless boundary validator for a specific DTO.

    Usage:
        user_validator = BoundaryValidator(CreateUserDto)
        result = user_validator.parse_ingress(request_data)
    """

    __slots__ = ("schema", "mode")

    def __init__(self, schema: type[S], mode: ValidationMode | str | None = None):
        self.schema, self.mode = schema, mode

    def parse_ingress(self, data: Any, *, origin: str = "ingress") -> Result[S, ValidationError]:
        """Parse and validate data entering the system."""
        result = self.schema.parse_result(data, mode=self.mode)
        if result.is_err():
            error = result.unwrap_err()
            log.info("payload_rejected", schema=self.schema.__name__, origin=origin, mode=error.mode.value,
                error_count=len(error.failures), fields=[f.path for f in error.failures])
        return result


def parse_ingress(schema: type[S], data: Any, *, mode: ValidationMode | str | None = None) -> Result[S, ValidationError]:
    """Parse and validate incoming data.

    Usage:
        result = parse_ingress(CreateUserDto, payload)
        if result.is_err():
            return render(result.unwrap_err())
        user = result.unwrap()
    """
    return BoundaryValidator(schema, mode).parse_ingress(data)


def parse_batch(schema: type[S], items: list[Any], *, mode: ValidationMode | str | None = None,
                max_errors: int = 50) -> Result[list[S], list[tuple[int, ValidationError]]]:
    """Parse and validate a batch of items.

    Returns Ok with all valid items or Err with (index, error) pairs.
    """
    validator = BoundaryValidator(schema, mode)
    valid: list[S] = []
    errors: list[tuple[int, ValidationError]] = []

    for idx, item in enumerate(items):
        if len(errors) >= max_errors:
            break
        result = validator.parse_ingress(item, origin="batch")
        if result.is_ok():
            valid.append(result.unwrap())
        else:
            errors.append((idx, result.unwrap_err()))

    if errors:
        return Err(errors)
    return Ok(valid)


# ============================================================================
# FastAPI Integration
# ============================================================================

def _invalid_json(schema: type[Dto], exc: Exception) -> ValidationError:
    failure = ValidationFailure(field="$", rule="json", message=f"Invalid JSON in request body: {exc}",
        code=ErrorCode.E2021_INVALID_JSON)
    return ValidationError(message=f"{schema.__name__} validation failed", failures=[failure])


class ValidatedBody(Generic[S]):
    """FastAPI dependency for a validated request body.

    Usage:
        @router.post("/users")
        async def create_user(body: Annotated[CreateUserDto, Depends(ValidatedBody(CreateUserDto))]):
            ...
    """

    def __init__(self, schema: type[S], *, mode: ValidationMode | str | None = None):
        self.schema = schema
        self.mode = mode
        self.validator = BoundaryValidator(schema, mode)

    async def __call__(self, request: Request) -> S:
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            log.info("payload_rejected", schema=self.schema.__name__, origin="body", reason="invalid_json")
            raise _invalid_json(self.schema, e) from e

        result = self.validator.parse_ingress(body, origin="body")
        if result.is_err():
            raise result.unwrap_err()
        return result.unwrap()


class ValidatedQuery(Generic[S]):
    """FastAPI dependency for validated query parameters.

    Repeated keys become lists so ``each`` fields receive every value;
    number and date fields coerce the raw strings.
    """

    def __init__(self, schema: type[S], *, mode: ValidationMode | str | None = None):
        self.schema = schema
        self.mode = mode
        self.validator = BoundaryValidator(schema, mode)

    async def __call__(self, request: Request) -> S:
        params: dict[str, Any] = {}
        for key, value in request.query_params.multi_items():
            if key not in params:
                params[key] = value
            elif isinstance(params[key], list):
                params[key].append(value)
            else:
                params[key] = [params[key], value]

        result = self.validator.parse_ingress(params, origin="query")
        if result.is_err():
            raise result.unwrap_err()
        return result.unwrap()


def validated_body(schema: type[S], *, mode: ValidationMode | str | None = None) -> Callable:
    """FastAPI dependency factory for a validated request body.

    Usage:
        @router.post("/users")
        async def create_user(body: CreateUserDto = validated_body(CreateUserDto)):
            ...
    """
    return Depends(ValidatedBody(schema, mode=mode))


def validated_query(schema: type[S], *, mode: ValidationMode | str | None = None) -> Callable:
    """FastAPI dependency factory for validated query parameters."""
    return Depends(ValidatedQuery(schema, mode=mode))
