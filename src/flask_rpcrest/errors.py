"""Error taxonomy for flask-rpcrest.

Every error that leaves the dispatch layer is an RpcRestError subclass and is
rendered as JSON ``{error, message, statusCode, path}`` by the blueprint error
handler. Foreign exceptions are folded into the taxonomy by
error_from_exception(), which relies on the message heuristic in
infer_status_code().
"""

from __future__ import annotations

import json
from typing import Any


class RpcRestError(Exception):
    """Base class for all errors surfaced as HTTP responses."""

    status_code: int = 500
    error: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        details: Any = None,
        operation: str | None = None,
        params: Any = None,
        error: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.operation = operation
        self.params = params
        if error is not None:
            self.error = error

    def to_dict(self, path: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {
            "error": self.error,
            "message": self.message,
            "statusCode": self.status_code,
            "path": path,
        }
        if self.details is not None:
            body["details"] = self.details
        if self.operation is not None:
            body["operation"] = self.operation
        if self.params is not None:
            body["params"] = self.params
        return body


class BadRequest(RpcRestError):
    status_code = 400
    error = "BAD_REQUEST"


class Unauthenticated(RpcRestError):
    status_code = 401
    error = "AUTHENTICATION_FAILED"


class NotFound(RpcRestError):
    status_code = 404
    error = "NOT_FOUND"


class Conflict(RpcRestError):
    status_code = 409
    error = "CONFLICT"


class RemoteFault(RpcRestError):
    """Structured or unstructured fault reported by the backend."""

    status_code = 400
    error = "AXL_ERROR"


class ServiceUnavailable(RpcRestError):
    status_code = 503
    error = "SERVICE_UNAVAILABLE"


class InternalError(RpcRestError):
    status_code = 500
    error = "INTERNAL_ERROR"


_STATUS_CLASSES: dict[int, type[RpcRestError]] = {
    400: BadRequest,
    404: NotFound,
    409: Conflict,
    500: InternalError,
}


def infer_status_code(message: str | None) -> int:
    """Best-effort HTTP status inference from a free-text error message.

    Mapping (checked in order):
        "not found"                       -> 404
        "already exists"                  -> 409
        "invalid" / "missing required"    -> 400
        anything else                     -> 500

    Fragile by nature; kept in one place so it can be replaced by a
    structured error-code contract.
    """
    if not message:
        return 500
    if "not found" in message:
        return 404
    if "already exists" in message:
        return 409
    if "invalid" in message or "missing required" in message:
        return 400
    return 500


def error_from_exception(
    exc: BaseException,
    *,
    operation: str | None = None,
    params: Any = None,
) -> RpcRestError:
    """Wrap an arbitrary exception into the RpcRestError taxonomy."""
    if isinstance(exc, RpcRestError):
        return exc
    message = stringify(exc.args[0]) if exc.args else (str(exc) or type(exc).__name__)
    cls = _STATUS_CLASSES[infer_status_code(message)]
    return cls(message, operation=operation, params=params)


def stringify(payload: Any) -> str:
    """Render an arbitrary fault payload as a message string."""
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, default=str)
    except (TypeError, ValueError):
        return str(payload)
