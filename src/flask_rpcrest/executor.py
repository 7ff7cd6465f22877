"""Operation executor: verify, shape, invoke, and map backend failures.

handle() runs one request end to end:

1. verify the operation is still in the backend catalog (404 otherwise)
2. fetch the argument shape (empty on failure)
3. transform the request into arguments (400 on missing identifiers)
4. invoke the backend and map faults onto the error taxonomy

No retries and no timeouts are applied here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from flask_rpcrest.backends import BackendConnectionError, BackendError, BackendFault
from flask_rpcrest.errors import (
    BadRequest,
    NotFound,
    RemoteFault,
    RpcRestError,
    ServiceUnavailable,
    error_from_exception,
    stringify,
)
from flask_rpcrest.transform import RequestData, TransformOptions, transform_arguments

if TYPE_CHECKING:
    from flask_rpcrest.backends import OperationBackend
    from flask_rpcrest.naming import OperationRoute

logger = logging.getLogger("flask_rpcrest")


class OperationExecutor:
    """Runs classified operations against a backend."""

    def __init__(
        self,
        backend: OperationBackend,
        *,
        options: TransformOptions | None = None,
        fault_error_code: str = RemoteFault.error,
    ) -> None:
        self.backend = backend
        self.options = options or TransformOptions()
        self.fault_error_code = fault_error_code

    async def handle(self, route: OperationRoute, request: RequestData) -> tuple[Any, int]:
        """Serve one request for ``route``; returns ``(body, status)``."""
        await self.verify(route.operation)
        shape = await self.argument_shape(route.operation)
        arguments = transform_arguments(route, request, shape, self.options)
        return await self.execute(route.operation, arguments, verify=False)

    async def verify(self, operation: str) -> None:
        """Raise NotFound when ``operation`` left the catalog.

        A catalog that cannot be fetched does not block the call; the
        invocation itself will surface the backend problem.
        """
        try:
            catalog = await self.backend.list_operations()
        except Exception:
            logger.warning("Could not verify %s against the catalog", operation, exc_info=True)
            return
        if operation not in catalog:
            raise NotFound(f"Operation '{operation}' not found in backend catalog", operation=operation)

    async def argument_shape(self, operation: str) -> dict[str, Any]:
        try:
            shape = await self.backend.get_argument_shape(operation)
        except Exception:
            logger.warning("Could not fetch argument shape for %s; using empty shape", operation, exc_info=True)
            return {}
        return shape if isinstance(shape, dict) else {}

    async def execute(self, operation: str, arguments: dict[str, Any], *, verify: bool = True) -> tuple[Any, int]:
        """Invoke ``operation`` with already transformed ``arguments``.

        Returns:
            ``(body, status)``; an empty result becomes an informational
            200 message.

        Raises:
            RpcRestError: For every failure, classified.
        """
        if verify:
            await self.verify(operation)

        logger.debug("Invoking %s with %r", operation, arguments)
        try:
            result = await self.backend.invoke(operation, arguments)
        except RpcRestError:
            raise
        except (BackendConnectionError, ConnectionError) as exc:
            logger.error("Backend unreachable while calling %s: %s", operation, exc)
            raise ServiceUnavailable(
                "Cannot connect to the backend service. Please check connection settings.",
                details=str(exc),
                operation=operation,
            ) from exc
        except BackendFault as exc:
            logger.warning("Remote fault from %s: %s", operation, exc)
            raise RemoteFault(
                exc.message,
                details=exc.detail,
                operation=operation,
                params=arguments,
                error=self.fault_error_code,
            ) from exc
        except BackendError as exc:
            logger.warning("Backend error from %s: %r", operation, exc.payload)
            raise BadRequest(stringify(exc.payload), operation=operation, params=arguments) from exc
        except Exception as exc:
            error = error_from_exception(exc, operation=operation, params=arguments)
            if error.status_code >= 500:
                logger.exception("Unexpected failure while calling %s", operation)
            else:
                logger.warning("Call to %s failed: %s", operation, error.message)
            raise error from exc

        if _is_empty(result):
            return {"message": f"No content returned for operation {operation}", "statusCode": 200}, 200
        return result, 200


def _is_empty(result: Any) -> bool:
    if result is None or isinstance(result, bool):
        return not result
    if isinstance(result, (int, float)):
        # Zero and NaN
        return not result or result != result
    return result == "" or result == {}
