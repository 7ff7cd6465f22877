"""Documentation model mirroring the bound route table.

DocumentationBuilder turns each BoundRoute into one operation object keyed by
documentation path and lower-case verb; DocumentationStore owns the current
model and swaps it atomically on regeneration, so readers always see either
the previous or the new model, never a partial one.
"""

from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from flask_rpcrest.naming import PARAMETER_TYPE, PARAMETER_VALUE, RouteKind, documentation_tag

if TYPE_CHECKING:
    from flask_rpcrest.examples import Example, ExampleLookup
    from flask_rpcrest.routing import BoundRoute

logger = logging.getLogger("flask_rpcrest")

ERROR_SCHEMA_REF = "#/components/schemas/ErrorResponse"

_PLACEHOLDER = re.compile(r":(\w+)")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")


@dataclass(frozen=True)
class DocumentationModel:
    """Documentation path -> lower-case verb -> operation object."""

    paths: dict[str, dict[str, dict[str, Any]]] = field(default_factory=dict)

    @property
    def entry_count(self) -> int:
        return sum(len(verbs) for verbs in self.paths.values())

    @property
    def operations(self) -> frozenset[str]:
        return frozenset(
            entry["x-rpc-operation"] for verbs in self.paths.values() for entry in verbs.values()
        )

    def get(self, path: str, http_method: str) -> dict[str, Any] | None:
        return self.paths.get(path, {}).get(http_method.lower())

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self.paths)


class DocumentationStore:
    """Explicitly owned holder of the current DocumentationModel."""

    def __init__(self, model: DocumentationModel | None = None) -> None:
        self._model = model or DocumentationModel()

    @property
    def model(self) -> DocumentationModel:
        return self._model

    def swap(self, model: DocumentationModel) -> DocumentationModel:
        """Replace the current model; returns the previous one."""
        previous, self._model = self._model, model
        logger.debug("Documentation model swapped: %d entries", model.entry_count)
        return previous


def documentation_path(base: str, pattern: str) -> str:
    """``/line/:parameterType/:parameterValue`` -> ``<base>/line/{parameterType}/{parameterValue}``."""
    return base + _PLACEHOLDER.sub(r"{\1}", pattern)


def operation_id(bound: BoundRoute) -> str:
    """Unique id derived from verb and pattern (unique per bound route)."""
    return _NON_ALNUM.sub("_", f"{bound.http_method.lower()}{bound.pattern}").strip("_")


class DocumentationBuilder:
    """Accumulates operation objects for bound routes."""

    def __init__(self, base: str, *, examples: ExampleLookup | None = None) -> None:
        self.base = base
        self.examples = examples
        self._paths: dict[str, dict[str, dict[str, Any]]] = {}

    def add(self, bound: BoundRoute) -> dict[str, Any]:
        path = documentation_path(self.base, bound.pattern)
        verb = bound.http_method.lower()
        entry = build_operation(bound, self.base, self._examples_for(bound))
        self._paths.setdefault(path, {})[verb] = entry
        return entry

    def build(self) -> DocumentationModel:
        return DocumentationModel(paths=self._paths)

    def _examples_for(self, bound: BoundRoute) -> list[Example] | None:
        if bound.http_method == "GET" or self.examples is None:
            return None
        route = bound.route
        try:
            return self.examples.lookup(
                route.segment,
                bound.http_method,
                resource_tag=route.tag,
                operation=route.operation,
            )
        except Exception:
            logger.warning("Example lookup failed for %s", route.operation, exc_info=True)
            return None


def build_operation(bound: BoundRoute, base: str, examples: list[Example] | None) -> dict[str, Any]:
    """Build the operation object for one bound route."""
    route = bound.route
    display_path = base + bound.pattern

    entry: dict[str, Any] = {
        "summary": f"{bound.http_method} {display_path} ({route.operation})",
        "description": describe(bound),
        "operationId": operation_id(bound),
        "tags": [documentation_tag(bound.source)],
        "x-rpc-operation": route.operation,
    }

    if bound.parameterized:
        entry["parameters"] = path_parameters(bound)

    if bound.http_method != "GET":
        media: dict[str, Any] = {"schema": {"type": "object"}}
        if examples:
            media["examples"] = {
                f"example{index}": example.model_dump(exclude_none=True)
                for index, example in enumerate(examples, start=1)
            }
        entry["requestBody"] = {
            "required": route.kind is RouteKind.ADD,
            "content": {"application/json": media},
        }

    entry["responses"] = {
        "200": {
            "description": "Successful operation",
            "content": {"application/json": {"schema": {"type": "object"}}},
        },
        "400": _error_response("Bad request or remote fault"),
        "404": _error_response("Operation or resource not found"),
        "500": _error_response("Internal server error"),
    }
    return entry


def path_parameters(bound: BoundRoute) -> list[dict[str, Any]]:
    type_description = "Field used to identify the resource (e.g. name or uuid)"
    value_description = "Value of the identifying field"
    if bound.route.kind is RouteKind.LIST:
        type_description = "Search criteria field to filter on (e.g. name)"
        value_description = "Filter value; use % as a wildcard"
    return [
        {
            "name": PARAMETER_TYPE,
            "in": "path",
            "required": True,
            "description": type_description,
            "schema": {"type": "string"},
        },
        {
            "name": PARAMETER_VALUE,
            "in": "path",
            "required": True,
            "description": value_description,
            "schema": {"type": "string"},
        },
    ]


def describe(bound: BoundRoute) -> str:
    """Human-readable guidance for an operation, varying by category."""
    route = bound.route
    operation = route.operation

    if bound.is_companion:
        return (
            f"Returns all available {route.segment} resources ({operation}). "
            f"Companion of {bound.source.operation}: lists what the add operation creates."
        )

    if route.kind is RouteKind.LIST:
        if bound.parameterized:
            return (
                f"Lists {route.segment} filtered by one search field ({operation}).\n\n"
                "**Search:** the parameter type must be a search criteria field; "
                "every other field defaults to the % wildcard. Query parameters "
                "matching search fields refine the filter further."
            )
        return f"Returns all available {route.segment} resources ({operation})"

    text = f"Calls {operation}"
    if route.kind is RouteKind.GET:
        return f"{text}. Identify the resource with any field, e.g. /name/Example or /uuid/<uuid>."

    if route.kind is RouteKind.ADD:
        return (
            f"{text}.\n\n**Case-sensitive resource wrapper:** wrap the payload in `{route.tag}` "
            f'(not `{route.segment}`), e.g. `{{ "{route.tag}": {{ "name": "Example" }} }}`. '
            "An unwrapped body is wrapped automatically."
        )

    if route.kind is RouteKind.UPDATE:
        return (
            f"{text}.\n\n**Direct parameters:** provide fields at the root level without a "
            'resource wrapper, e.g. `{ "name": "Example", "description": "Updated" }`. '
            "A URL parameter (like uuid or name) is added automatically."
        )

    if route.kind is RouteKind.REMOVE:
        return (
            f"{text}.\n\n**Resource identifier:** use the URL path parameters, or a body "
            'with name or uuid, e.g. `{ "uuid": "12345678-1234-1234-1234-123456789012" }`.'
        )

    if route.kind is RouteKind.COMMAND:
        if route.prefix == "do":
            return (
                f"{text}.\n\n**Do command:** some commands accept an empty body `{{}}`; others "
                "need identifiers or extra scalar parameters at the root level. No wrapper objects."
            )
        return (
            f"{text}.\n\n**{route.prefix.capitalize()} command:** identify the target with name "
            "or uuid at the root level. Additional scalar parameters are passed through."
        )

    return f"{text}. Path parameters, query parameters and body are merged (body wins)."


def _error_response(description: str) -> dict[str, Any]:
    return {
        "description": description,
        "content": {"application/json": {"schema": {"$ref": ERROR_SCHEMA_REF}}},
    }
