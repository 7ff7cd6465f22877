"""In-process backend over an apcore Registry and Executor.

Operations are apcore module ids (``addLine``, ``listLines``...), argument
shapes are skeletons derived from each module's JSON input schema, and
invocation runs the synchronous ``Executor.call`` in a worker thread with the
Flask app context pushed, so module functions can use ``current_app``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Sequence

from flask_rpcrest.backends import BackendFault
from flask_rpcrest.errors import NotFound

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger("flask_rpcrest")


class RegistryBackend:
    """OperationBackend backed by apcore modules.

    Usage:
        from apcore import Registry

        registry = Registry()
        registry.register("listLines", list_lines.apcore_module)
        backend = RegistryBackend(registry)
    """

    def __init__(
        self,
        registry: Any,
        *,
        middlewares: Sequence[Any] = (),
        app: Flask | None = None,
    ) -> None:
        self.registry = registry
        self.middlewares = list(middlewares)
        self.app = app
        self._executor = None

    @property
    def executor(self) -> Any:
        """apcore Executor, created on first use with the configured middlewares."""
        if self._executor is None:
            from apcore import Executor

            self._executor = Executor(self.registry, middlewares=self.middlewares)
            logger.debug("Created apcore.Executor with %d middlewares", len(self.middlewares))
        return self._executor

    async def list_operations(self, filter: str | None = None) -> list[str]:
        operations = sorted(self.registry.module_ids)
        if filter:
            needle = filter.lower()
            operations = [op for op in operations if needle in op.lower()]
        return operations

    async def get_argument_shape(self, operation: str) -> dict[str, Any]:
        descriptor = self.registry.get_definition(operation)
        if descriptor is None:
            raise NotFound(f"Operation '{operation}' not found", operation=operation)
        shape = schema_to_shape(descriptor.input_schema or {})
        return shape if isinstance(shape, dict) else {}

    async def invoke(self, operation: str, arguments: dict[str, Any]) -> Any:
        from apcore.errors import ModuleNotFoundError as ApcoreNotFound
        from apcore.errors import SchemaValidationError

        try:
            return await asyncio.to_thread(self._call, operation, arguments)
        except ApcoreNotFound as exc:
            raise NotFound(f"Operation '{operation}' not found", operation=operation) from exc
        except SchemaValidationError as exc:
            raise BackendFault(
                "SchemaValidationError",
                f"Input validation failed: {exc}",
                detail=getattr(exc, "details", None),
            ) from exc

    def _call(self, operation: str, arguments: dict[str, Any]) -> Any:
        from apcore import Context, Identity

        context = Context.create(identity=Identity(id="anonymous", type="anonymous"))
        if self.app is None:
            return self.executor.call(operation, arguments, context)
        with self.app.app_context():
            return self.executor.call(operation, arguments, context)


def schema_to_shape(schema: dict[str, Any], root: dict[str, Any] | None = None) -> Any:
    """Derive an argument skeleton from a JSON schema.

    Objects become dicts of their properties, arrays become empty lists and
    leaves take their declared default (``""`` when none)::

        {"type": "object", "properties": {"searchCriteria": {"type": "object",
         "properties": {"name": {"type": "string"}}}}}
        -> {"searchCriteria": {"name": ""}}
    """
    root = root if root is not None else schema

    ref = schema.get("$ref")
    if isinstance(ref, str) and ref.startswith("#/"):
        target: Any = root
        for part in ref[2:].split("/"):
            target = target.get(part, {}) if isinstance(target, dict) else {}
        return schema_to_shape(target, root)

    for combinator in ("anyOf", "oneOf", "allOf"):
        options = schema.get(combinator)
        if isinstance(options, list):
            for option in options:
                if isinstance(option, dict) and option.get("type") != "null":
                    if "default" in schema:
                        return schema["default"]
                    return schema_to_shape(option, root)

    if "default" in schema and schema["default"] is not None:
        return schema["default"]

    kind = schema.get("type")
    if kind == "object" or "properties" in schema:
        properties = schema.get("properties") or {}
        return {name: schema_to_shape(sub, root) for name, sub in properties.items() if isinstance(sub, dict)}
    if kind == "array":
        return []
    return ""
