"""Tests for flask_rpcrest.errors -- taxonomy and status inference."""

from __future__ import annotations

import pytest

from flask_rpcrest.errors import (
    BadRequest,
    Conflict,
    InternalError,
    NotFound,
    RemoteFault,
    RpcRestError,
    ServiceUnavailable,
    Unauthenticated,
    error_from_exception,
    infer_status_code,
    stringify,
)


class TestTaxonomy:
    @pytest.mark.parametrize(
        "cls, status, code",
        [
            (BadRequest, 400, "BAD_REQUEST"),
            (Unauthenticated, 401, "AUTHENTICATION_FAILED"),
            (NotFound, 404, "NOT_FOUND"),
            (Conflict, 409, "CONFLICT"),
            (RemoteFault, 400, "AXL_ERROR"),
            (ServiceUnavailable, 503, "SERVICE_UNAVAILABLE"),
            (InternalError, 500, "INTERNAL_ERROR"),
        ],
    )
    def test_status_and_code(self, cls, status, code):
        exc = cls("boom")
        assert isinstance(exc, RpcRestError)
        assert exc.status_code == status
        assert exc.error == code

    def test_to_dict_minimal(self):
        assert NotFound("gone").to_dict("/api/rpc/line") == {
            "error": "NOT_FOUND",
            "message": "gone",
            "statusCode": 404,
            "path": "/api/rpc/line",
        }

    def test_to_dict_with_context(self):
        body = RemoteFault("fault", details={"x": 1}, operation="addLine", params={"line": {}}).to_dict()
        assert body["details"] == {"x": 1}
        assert body["operation"] == "addLine"
        assert body["params"] == {"line": {}}

    def test_error_code_override_is_per_instance(self):
        exc = RemoteFault("fault", error="REMOTE_FAULT")
        assert exc.error == "REMOTE_FAULT"
        assert RemoteFault("other").error == "AXL_ERROR"


class TestInferStatusCode:
    @pytest.mark.parametrize(
        "message, status",
        [
            ("Line not found", 404),
            ("Item already exists", 409),
            ("invalid uuid", 400),
            ("missing required field name", 400),
            ("something broke", 500),
            ("", 500),
            (None, 500),
        ],
    )
    def test_heuristic(self, message, status):
        assert infer_status_code(message) == status

    def test_not_found_checked_first(self):
        assert infer_status_code("invalid key: not found") == 404


class TestErrorFromException:
    def test_passthrough(self):
        exc = Conflict("dup")
        assert error_from_exception(exc) is exc

    def test_lookup_error(self):
        error = error_from_exception(LookupError("Line not found"), operation="getLine", params={"uuid": "x"})
        assert isinstance(error, NotFound)
        assert error.operation == "getLine"
        assert error.params == {"uuid": "x"}

    def test_conflict(self):
        assert isinstance(error_from_exception(ValueError("Line 1 already exists")), Conflict)

    def test_default_internal(self):
        error = error_from_exception(RuntimeError())
        assert isinstance(error, InternalError)
        assert error.message == "RuntimeError"


def test_stringify():
    assert stringify("plain") == "plain"
    assert stringify({"a": 1}) == '{"a": 1}'
