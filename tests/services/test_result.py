"""Tests for ServiceResult, ServiceError, and the failure() helper."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from tradelink.domain.errors import BlockedError, ConflictError, StoreFailure
from tradelink.services.result import ServiceError, ServiceResult, failure


class TestServiceResult:
    def test_defaults(self) -> None:
        result = ServiceResult(ok=True, op="block")
        assert result.data == {}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="block")
        with pytest.raises(PydanticValidationError):
            result.ok = False  # type: ignore[misc]

    def test_json_round_trip(self) -> None:
        result = ServiceResult(
            ok=False,
            op="send_request",
            error=ServiceError(code="BLOCKED", message="nope", detail={"recipient": "x"}),
        )
        parsed = json.loads(result.model_dump_json())
        assert parsed["error"]["code"] == "BLOCKED"
        assert ServiceResult.model_validate(parsed) == result


class TestFailure:
    def test_copies_code_and_detail(self) -> None:
        result = failure("send_request", ConflictError("dup", detail={"connection_id": 3}))
        assert not result.ok
        assert result.op == "send_request"
        assert result.error.code == "CONFLICT"
        assert result.error.detail == {"connection_id": 3}

    def test_blocked_is_a_conflict_with_its_own_code(self) -> None:
        exc = BlockedError("blocked")
        assert isinstance(exc, ConflictError)
        assert failure("follow", exc).error.code == "BLOCKED"

    def test_store_failure_is_retryable(self) -> None:
        result = failure("block", StoreFailure("down"))
        assert result.error.code == "STORE_FAILURE"
        assert result.error.detail["retryable"] is True

    def test_keeps_warnings(self) -> None:
        result = failure("get_suggestions", ConflictError("x"), ["tier failed"])
        assert result.warnings == ["tier failed"]
