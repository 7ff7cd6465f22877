"""Request-to-operation-arguments transformation.

transform_arguments() turns an inbound request (path parameter pair, query
string, JSON body) plus the backend's declared argument shape into the
argument object handed to the backend. Each RouteKind has its own shaping
rule; the template substitution pass always runs last on the final tree.

Arguments are built fresh per call; the argument shape is deep-copied before
being touched so cached or shared shapes are never mutated.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from flask_rpcrest.errors import BadRequest
from flask_rpcrest.naming import OperationRoute, RouteKind
from flask_rpcrest.templates import DEFAULT_DATA_IDENTIFIER, substitute_templates

logger = logging.getLogger("flask_rpcrest")

IDENTIFIER_FIELDS = ("name", "uuid")


@dataclass(frozen=True)
class PathParameter:
    """The ``/:parameterType/:parameterValue`` pair of a request.

    ``parameter_type`` may be None, in which case ``uuid`` is assumed.
    """

    parameter_type: str | None
    parameter_value: str


@dataclass(frozen=True)
class RequestData:
    """Framework-neutral view of an inbound HTTP request."""

    path_parameter: PathParameter | None = None
    query: dict[str, Any] = field(default_factory=dict)
    body: Any = None


@dataclass(frozen=True)
class TransformOptions:
    """Knobs for argument shaping (built from RpcRestSettings)."""

    wildcard: str = "%"
    search_criteria_key: str = "searchCriteria"
    excluded_search_fields: tuple[str, ...] = ("customerName",)
    data_identifier: str = DEFAULT_DATA_IDENTIFIER


def transform_arguments(
    route: OperationRoute,
    request: RequestData,
    shape: dict[str, Any] | None,
    options: TransformOptions | None = None,
) -> dict[str, Any]:
    """Build the backend argument object for one request.

    Args:
        route: Classified operation route.
        request: Path parameter, query and body of the request.
        shape: Backend-declared argument skeleton (may be empty).
        options: Shaping options; defaults apply when omitted.

    Returns:
        A new argument dict.

    Raises:
        BadRequest: When a required identifier is absent.
    """
    options = options or TransformOptions()
    shape = copy.deepcopy(shape) if isinstance(shape, dict) else {}
    handler = _HANDLERS[route.kind]
    arguments = handler(route, request, shape, options)
    logger.debug("Shaped %s arguments for %s: %r", route.kind.value, route.operation, arguments)
    return substitute_templates(arguments, options.data_identifier)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def default_search_criteria(criteria: dict[str, Any], options: TransformOptions) -> dict[str, Any]:
    """Wildcard every search field and drop the excluded ones."""
    return {key: options.wildcard for key in criteria if key not in options.excluded_search_fields}


def _body_dict(request: RequestData) -> dict[str, Any]:
    body = request.body
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise BadRequest("Request body must be a JSON object")
    return copy.deepcopy(body)


def _unwrap(body: dict[str, Any], *keys: str) -> dict[str, Any]:
    """Flatten one wrapper level when the body is nested under one of ``keys``."""
    for key in keys:
        inner = body.get(key)
        if isinstance(inner, dict):
            flat = {k: v for k, v in body.items() if k != key}
            flat.update(inner)
            return flat
    return body


def _first_identifier(body: dict[str, Any]) -> tuple[str, Any] | None:
    for name in IDENTIFIER_FIELDS:
        value = body.get(name)
        if value not in (None, ""):
            return name, value
    return None


def _path_pair(request: RequestData) -> tuple[str, str] | None:
    param = request.path_parameter
    if param is None or param.parameter_value in (None, ""):
        return None
    return (param.parameter_type or "uuid"), param.parameter_value


def _search_arguments(shape: dict[str, Any], options: TransformOptions) -> dict[str, Any]:
    """Shape-derived arguments with the search criteria defaulted."""
    key = options.search_criteria_key
    arguments = dict(shape)
    criteria = shape.get(key)
    arguments[key] = default_search_criteria(criteria if isinstance(criteria, dict) else {}, options)
    return arguments


# ---------------------------------------------------------------------------
# Per-kind handlers
# ---------------------------------------------------------------------------


def _transform_list(
    route: OperationRoute, request: RequestData, shape: dict[str, Any], options: TransformOptions
) -> dict[str, Any]:
    key = options.search_criteria_key
    if key not in shape:
        return {}

    arguments = _search_arguments(shape, options)
    criteria = arguments[key]

    pair = _path_pair(request)
    if pair is not None:
        parameter_type, parameter_value = pair
        if parameter_type in criteria:
            criteria[parameter_type] = parameter_value
        else:
            logger.warning(
                "Parameter %s is not a search field of %s; ignoring it",
                parameter_type,
                route.operation,
            )

    for name, value in request.query.items():
        if name in criteria:
            criteria[name] = value

    return arguments


def _transform_get(
    route: OperationRoute, request: RequestData, shape: dict[str, Any], options: TransformOptions
) -> dict[str, Any]:
    pair = _path_pair(request)
    if pair is not None:
        parameter_type, parameter_value = pair
        return {parameter_type: parameter_value}

    if request.query:
        return dict(request.query)

    declared = [name for name in IDENTIFIER_FIELDS if name in shape]
    if declared and all(shape[name] in (None, "") for name in declared):
        raise BadRequest(
            f"Operation '{route.operation}' requires valid parameters (like name or uuid)",
            operation=route.operation,
        )

    if options.search_criteria_key in shape:
        return _search_arguments(shape, options)
    return {}


def _transform_add(
    route: OperationRoute, request: RequestData, shape: dict[str, Any], options: TransformOptions
) -> dict[str, Any]:
    if request.body is not None and not isinstance(request.body, dict):
        logger.debug("Wrapping non-object body of %s in '%s'", route.operation, route.tag)
        return {route.tag: copy.deepcopy(request.body)}
    body = _body_dict(request)
    if route.tag in body:
        logger.debug("Body of %s already wrapped in '%s'", route.operation, route.tag)
        return body
    logger.debug("Wrapping body of %s in '%s'", route.operation, route.tag)
    return {route.tag: body}


def _transform_update(
    route: OperationRoute, request: RequestData, shape: dict[str, Any], options: TransformOptions
) -> dict[str, Any]:
    arguments = _unwrap(_body_dict(request), route.tag)

    pair = _path_pair(request)
    if pair is not None:
        parameter_type, parameter_value = pair
        arguments[parameter_type] = parameter_value
    elif arguments.get("uuid") in (None, ""):
        # Lenient: the backend rejects it if it really needs one
        logger.warning("Update operation %s called without a uuid", route.operation)

    return arguments


def _transform_remove(
    route: OperationRoute, request: RequestData, shape: dict[str, Any], options: TransformOptions
) -> dict[str, Any]:
    pair = _path_pair(request)
    if pair is not None:
        parameter_type, parameter_value = pair
        return {parameter_type: parameter_value}

    identifier = _first_identifier(_unwrap(_body_dict(request), route.tag))
    if identifier is None:
        raise BadRequest(
            "An identifier (name or uuid, or a path parameter) is required for delete operations",
            operation=route.operation,
        )
    name, value = identifier
    return {name: value}


def _transform_command(
    route: OperationRoute, request: RequestData, shape: dict[str, Any], options: TransformOptions
) -> dict[str, Any]:
    body = _unwrap(_body_dict(request), route.operation, route.tag)

    arguments: dict[str, Any] = {}
    for key, value in body.items():
        if key == options.data_identifier or not isinstance(value, (dict, list)):
            arguments[key] = value

    pair = _path_pair(request)
    if pair is not None:
        parameter_type, parameter_value = pair
        arguments[parameter_type] = parameter_value

    if route.prefix != "do" and _first_identifier(arguments) is None:
        raise BadRequest(
            f"Operation '{route.operation}' requires a name or uuid",
            operation=route.operation,
        )
    return arguments


def _transform_fallback(
    route: OperationRoute, request: RequestData, shape: dict[str, Any], options: TransformOptions
) -> dict[str, Any]:
    arguments: dict[str, Any] = {}
    pair = _path_pair(request)
    if pair is not None:
        parameter_type, parameter_value = pair
        arguments[parameter_type] = parameter_value
    arguments.update(request.query)
    arguments.update(_body_dict(request))
    return arguments


_HANDLERS: dict[
    RouteKind,
    Callable[[OperationRoute, RequestData, dict[str, Any], TransformOptions], dict[str, Any]],
] = {
    RouteKind.LIST: _transform_list,
    RouteKind.GET: _transform_get,
    RouteKind.ADD: _transform_add,
    RouteKind.UPDATE: _transform_update,
    RouteKind.REMOVE: _transform_remove,
    RouteKind.COMMAND: _transform_command,
    RouteKind.FALLBACK: _transform_fallback,
}
