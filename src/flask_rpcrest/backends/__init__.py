"""Backend collaborator interface for flask-rpcrest.

A backend executes named operations and describes their argument shape.
Any object implementing the OperationBackend protocol can be plugged into
RpcRest; RegistryBackend (apcore Registry/Executor) is the built-in one.

Backends signal failures with the exceptions below so the executor can map
them onto HTTP responses:

- BackendConnectionError -> 503 (backend unreachable)
- BackendFault           -> 400 remote fault, code/message passed verbatim
- BackendError           -> 400 remote fault, payload stringified
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger("flask_rpcrest")


class BackendError(Exception):
    """Unstructured failure reported by the backend."""

    def __init__(self, payload: Any = None) -> None:
        super().__init__(payload)
        self.payload = payload


class BackendFault(BackendError):
    """Structured remote fault carrying a code and message."""

    def __init__(self, code: str, message: str, detail: Any = None) -> None:
        super().__init__({"faultcode": code, "faultstring": message, "detail": detail})
        self.code = code
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class BackendConnectionError(BackendError):
    """The backend could not be reached."""


@runtime_checkable
class OperationBackend(Protocol):
    """Protocol every backend implements."""

    async def list_operations(self, filter: str | None = None) -> list[str]: ...

    async def get_argument_shape(self, operation: str) -> dict[str, Any]: ...

    async def invoke(self, operation: str, arguments: dict[str, Any]) -> Any: ...


def resolve_backend(path: str, **kwargs: Any) -> OperationBackend:
    """Import and instantiate a backend from a dotted path.

    Args:
        path: Dotted path, e.g. ``'myapp.backends.SoapBackend'``.
        **kwargs: Passed to the class or factory.

    Returns:
        The backend instance.

    Raises:
        TypeError: If the resolved object does not implement OperationBackend.
    """
    module_path, attr_name = path.rsplit(".", 1)
    mod = importlib.import_module(module_path)
    factory = getattr(mod, attr_name)
    backend = factory(**kwargs)
    if not isinstance(backend, OperationBackend):
        raise TypeError(f"{path} did not produce an OperationBackend (got {type(backend).__name__})")
    logger.debug("Resolved backend %s", path)
    return backend


__all__ = [
    "BackendConnectionError",
    "BackendError",
    "BackendFault",
    "OperationBackend",
    "resolve_backend",
]
