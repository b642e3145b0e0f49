"""Tests for the Result types and error taxonomy."""

from __future__ import annotations

import pytest

from fieldspec.errors import AppError, Err, ErrorCode, ErrorContext, Ok


class TestErrorCode:
    @pytest.mark.parametrize(
        ("code", "status"),
        [
            (ErrorCode.E2001_REQUIRED_FIELD_MISSING, 422),
            (ErrorCode.E2013_INVALID_PHONE, 422),
            (ErrorCode.E2020_PAYLOAD_TOO_LARGE, 413),
            (ErrorCode.E9010_CONFIGURATION_INVALID, 500),
        ],
    )
    def test_http_status(self, code: ErrorCode, status: int) -> None:
        assert code.http_status == status

    def test_category(self) -> None:
        assert ErrorCode.E2011_INVALID_UUID.category == "validation"
        assert ErrorCode.E9010_CONFIGURATION_INVALID.category == "configuration"
        assert ErrorCode.E9001_UNEXPECTED_ERROR.category == "internal"


class TestAppError:
    def test_with_context_keeps_correlation_id_when_not_given(self) -> None:
        error = AppError(code=ErrorCode.E2004_INVALID_TYPE, message="bad", context=ErrorContext(correlation_id="abc"))
        updated = error.with_context(origin="body")
        assert updated.context.correlation_id == "abc"
        assert updated.context.origin == "body"
        assert error.context.origin == ""

    def test_with_metadata_merges(self) -> None:
        error = AppError(code=ErrorCode.E2004_INVALID_TYPE, message="bad", metadata={"a": 1})
        assert error.with_metadata(b=2).metadata == {"a": 1, "b": 2}
        assert error.metadata == {"a": 1}

    def test_to_dict(self) -> None:
        payload = AppError(code=ErrorCode.E2010_INVALID_EMAIL, message="bad email").to_dict()["error"]
        assert payload["code"] == "E2010_INVALID_EMAIL"
        assert payload["code_num"] == 2010
        assert payload["category"] == "validation"


class TestResult:
    def test_ok(self) -> None:
        result = Ok(3)
        assert result.is_ok() and not result.is_err()
        assert result.map(lambda v: v + 1).unwrap() == 4
        assert list(result) == [3]

    def test_err(self) -> None:
        result = Err("boom")
        assert result.is_err()
        assert result.unwrap_or(0) == 0
        assert result.map(lambda v: v + 1) is result
        assert list(result) == []
        with pytest.raises(ValueError, match="boom"):
            result.unwrap()
