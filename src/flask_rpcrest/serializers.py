"""Shared serialization of routes and operations.

Pure functions with no Flask dependency. Used by the namespace blueprint,
the CLI, and the output writers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

from flask_rpcrest.naming import classify

if TYPE_CHECKING:
    from flask_rpcrest.routing import BoundRoute


def route_to_dict(bound: BoundRoute, base: str = "") -> dict[str, Any]:
    """Convert a BoundRoute to a flat dict.

    Args:
        bound: A bound route.
        base: Namespace base prepended to the pattern.

    Returns:
        Dictionary representation of the route.
    """
    return {
        "method": bound.http_method,
        "path": base + bound.pattern,
        "operation": bound.operation,
        "kind": bound.route.kind.value,
        "declaredBy": bound.source.operation,
        "parameterized": bound.parameterized,
    }


def routes_to_dicts(routes: Iterable[BoundRoute], base: str = "") -> list[dict[str, Any]]:
    return [route_to_dict(bound, base) for bound in routes]


def operation_endpoint(operation: str, base: str = "", add_method: str = "POST") -> dict[str, Any]:
    """Describe how an operation is reached over HTTP.

    ``get*`` operations are only reachable through the parameterized route,
    so their endpoint is reported with the parameter pair.
    """
    route = classify(operation, add_method)
    endpoint = route.parameter_path(base) if route.requires_path_parameter else route.path(base)
    return {
        "operation": operation,
        "httpMethod": route.http_method,
        "endpoint": endpoint,
        "usage": f"{route.http_method} {endpoint}",
    }
