"""Naming-convention classifier for RPC operation names.

Maps an operation name such as ``addRoutePartition`` or ``listPhones`` to a
frozen OperationRoute describing how it is exposed over HTTP:

    get*                      -> GET    /resource/:parameterType/:parameterValue
    list*                     -> GET    /resources  (+ parameterized filter route)
    add*                      -> POST   /resource   (PUT when configured)
    update*                   -> PATCH  /resource   (+ parameterized route)
    remove* / delete*         -> DELETE /resource   (+ parameterized route)
    apply* / reset* / do* /
    restart*                  -> POST   /<operation>  (command)
    anything else             -> POST   /<operation>  (fallback)

Prefixes are matched case-insensitively, first match wins.

Two resource derivations live side by side and must not be mixed up:
- resource_segment(): lower-cased URL segment (URLs are case-insensitive)
- resource_tag(): case-preserving wrapper key for the backend, only the
  leading character lower-cased ("RoutePartition" -> "routePartition")
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

# Placeholders used in route patterns for the single-instance path shape.
PARAMETER_TYPE = "parameterType"
PARAMETER_VALUE = "parameterValue"
PARAMETER_SUFFIX = f"/:{PARAMETER_TYPE}/:{PARAMETER_VALUE}"

VALID_ADD_METHODS = ("POST", "PUT")

_NON_WORD = re.compile(r"[^\w-]")


class RouteKind(enum.Enum):
    """Closed set of operation categories derived from the name prefix."""

    LIST = "list"
    GET = "get"
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"
    COMMAND = "command"
    FALLBACK = "fallback"


# Order matters: first match wins.
_PREFIXES: tuple[tuple[str, RouteKind], ...] = (
    ("get", RouteKind.GET),
    ("list", RouteKind.LIST),
    ("add", RouteKind.ADD),
    ("update", RouteKind.UPDATE),
    ("remove", RouteKind.REMOVE),
    ("delete", RouteKind.REMOVE),
    ("apply", RouteKind.COMMAND),
    ("reset", RouteKind.COMMAND),
    ("restart", RouteKind.COMMAND),
    ("do", RouteKind.COMMAND),
)

_HTTP_METHODS: dict[RouteKind, str] = {
    RouteKind.GET: "GET",
    RouteKind.LIST: "GET",
    RouteKind.UPDATE: "PATCH",
    RouteKind.REMOVE: "DELETE",
    RouteKind.COMMAND: "POST",
    RouteKind.FALLBACK: "POST",
}


@dataclass(frozen=True)
class OperationRoute:
    """Route descriptor derived from an operation name.

    Attributes:
        operation: The operation name as reported by the backend.
        kind: Category derived from the name prefix.
        prefix: The matched prefix in lower case ("" for fallback).
        http_method: Upper-case HTTP verb.
        segment: URL path segment (lower-cased, pluralized for list).
        tag: Case-preserving wrapper tag used when talking to the backend.
        accepts_path_parameter: Whether a ``/:parameterType/:parameterValue``
            route is offered.
        requires_path_parameter: Whether the bare route is withheld
            (pure ``get*`` operations).
    """

    operation: str
    kind: RouteKind
    prefix: str
    http_method: str
    segment: str
    tag: str
    accepts_path_parameter: bool
    requires_path_parameter: bool

    def path(self, base: str = "") -> str:
        """Bare route path, e.g. ``/api/rpc/line``."""
        return f"{base}/{self.segment}"

    def parameter_path(self, base: str = "") -> str:
        """Parameterized route path, e.g. ``/api/rpc/line/:parameterType/:parameterValue``."""
        return f"{base}/{self.segment}{PARAMETER_SUFFIX}"


def split_prefix(operation: str) -> tuple[str, RouteKind]:
    """Return the matched lower-case prefix and its RouteKind."""
    lowered = operation.lower()
    for prefix, kind in _PREFIXES:
        if lowered.startswith(prefix):
            return prefix, kind
    return "", RouteKind.FALLBACK


def resource_segment(operation: str) -> str:
    """Derive the lower-cased URL segment for an operation.

    The matched prefix is stripped and non word/hyphen characters removed.
    Commands and fallback operations keep their full name.
    """
    prefix, kind = split_prefix(operation)
    if kind in (RouteKind.COMMAND, RouteKind.FALLBACK):
        stem = operation
    else:
        stem = operation[len(prefix):]
    return _NON_WORD.sub("", stem.lower())


def resource_tag(operation: str) -> str:
    """Derive the case-preserving wrapper tag for an operation.

    >>> resource_tag("addRoutePartition")
    'routePartition'
    """
    prefix, kind = split_prefix(operation)
    tag = operation
    if kind is not RouteKind.FALLBACK and len(operation) > len(prefix):
        tag = operation[len(prefix):]
    if not tag:
        return tag
    return tag[0].lower() + tag[1:]


def pluralize(segment: str) -> str:
    """Append a trailing ``s`` unless present or the stem is too short."""
    if segment.endswith("s") or len(segment) <= 2:
        return segment
    return segment + "s"


def singularize(segment: str) -> str:
    """Strip a trailing ``s`` when the remaining stem is longer than two chars."""
    if segment.endswith("s") and len(segment) - 1 > 2:
        return segment[:-1]
    return segment


def classify(operation: str, add_method: str = "POST") -> OperationRoute:
    """Classify an operation name into an OperationRoute.

    Args:
        operation: Operation name, e.g. ``"listPhones"``.
        add_method: HTTP verb used for ``add*`` operations (POST or PUT).

    Returns:
        Frozen OperationRoute.

    Raises:
        ValueError: If ``add_method`` is not POST or PUT.
    """
    add_method = add_method.upper()
    if add_method not in VALID_ADD_METHODS:
        raise ValueError(f"add_method must be one of: {', '.join(VALID_ADD_METHODS)}. Got: '{add_method}'")

    prefix, kind = split_prefix(operation)
    segment = resource_segment(operation)
    if kind is RouteKind.LIST:
        segment = pluralize(segment)

    http_method = add_method if kind is RouteKind.ADD else _HTTP_METHODS[kind]

    return OperationRoute(
        operation=operation,
        kind=kind,
        prefix=prefix,
        http_method=http_method,
        segment=segment,
        tag=resource_tag(operation),
        accepts_path_parameter=http_method in ("GET", "PATCH", "DELETE"),
        requires_path_parameter=kind is RouteKind.GET,
    )


def documentation_tag(route: OperationRoute) -> str:
    """Grouping tag for documentation.

    Commands are grouped by their prefix regardless of target resource;
    everything else is grouped by the singular resource so that ``listPhones``
    and ``getPhone`` land together.
    """
    if route.kind is RouteKind.COMMAND:
        return route.prefix
    if route.kind is RouteKind.FALLBACK:
        return "other"
    return singularize(route.segment) or "other"
