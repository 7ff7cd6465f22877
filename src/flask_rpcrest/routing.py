"""Dynamic route registration over the backend operation catalog.

Flask does not allow adding URL rules once the app has started serving, so
operation routes are not Flask url rules. The namespace blueprint owns a
catch-all rule and dispatches through the current RouteTable, an immutable
snapshot that the RouteRegistrar replaces wholesale on every regeneration.

Registration per operation (operations sorted list-first, then by name):

- every operation except ``get*`` gets its bare route (``/line``)
- ``add*`` also gets ``GET /line`` served by the matching ``list*`` operation
- GET/PATCH/DELETE verbs also get ``/line/:parameterType/:parameterValue``

Matching is first-registered-wins: a later route with a (verb, pattern)
already bound is skipped, so the documentation model carries exactly one
entry per bound route.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Iterator

from flask_rpcrest.docs import DocumentationBuilder
from flask_rpcrest.naming import OperationRoute, RouteKind, classify, split_prefix
from flask_rpcrest.transform import PathParameter

if TYPE_CHECKING:
    from flask_rpcrest.backends import OperationBackend
    from flask_rpcrest.docs import DocumentationModel, DocumentationStore
    from flask_rpcrest.examples import ExampleLookup

logger = logging.getLogger("flask_rpcrest")


@dataclass(frozen=True)
class BoundRoute:
    """One HTTP route bound to an operation.

    Attributes:
        http_method: Upper-case HTTP verb.
        pattern: Path relative to the namespace base, with ``:name`` placeholders.
        route: Classified route of the operation that serves requests.
        source: Classified route of the operation that declared this route
            (differs from ``route`` for the add/list companion).
        parameterized: Whether the pattern ends in the parameter pair.
    """

    http_method: str
    pattern: str
    route: OperationRoute
    source: OperationRoute
    parameterized: bool = False

    @property
    def operation(self) -> str:
        return self.route.operation

    @property
    def is_companion(self) -> bool:
        return self.route.operation != self.source.operation

    @property
    def segments(self) -> tuple[str, ...]:
        return tuple(part for part in self.pattern.split("/") if part)

    def match(self, http_method: str, segments: tuple[str, ...]) -> RouteMatch | None:
        """Return a RouteMatch when the verb and path segments fit this route."""
        if http_method.upper() != self.http_method:
            return None
        expected = self.segments
        if len(expected) != len(segments):
            return None
        captured: dict[str, str] = {}
        for want, got in zip(expected, segments):
            if want.startswith(":"):
                captured[want[1:]] = got
            elif want != got.lower():
                return None
        parameter = None
        if self.parameterized:
            parameter = PathParameter(captured.get("parameterType"), captured.get("parameterValue", ""))
        return RouteMatch(bound=self, path_parameter=parameter)


@dataclass(frozen=True)
class RouteMatch:
    bound: BoundRoute
    path_parameter: PathParameter | None = None


class RouteTable:
    """Immutable, ordered set of bound routes."""

    def __init__(self, routes: Iterable[BoundRoute] = ()) -> None:
        self._routes: tuple[BoundRoute, ...] = tuple(routes)

    def __iter__(self) -> Iterator[BoundRoute]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    @property
    def operations(self) -> frozenset[str]:
        return frozenset(bound.operation for bound in self._routes)

    def find(self, http_method: str, pattern: str) -> BoundRoute | None:
        """Exact lookup by verb and pattern."""
        http_method = http_method.upper()
        for bound in self._routes:
            if bound.http_method == http_method and bound.pattern == pattern:
                return bound
        return None

    def match(self, http_method: str, path: str) -> RouteMatch | None:
        """Resolve a request path (relative to the namespace base)."""
        segments = tuple(part for part in path.split("/") if part)
        for bound in self._routes:
            found = bound.match(http_method, segments)
            if found is not None:
                return found
        return None


def registration_order(operations: Iterable[str]) -> list[str]:
    """Sort operations so ``list*`` come before everything else, then by name."""
    unique = dict.fromkeys(op for op in operations if op)
    return sorted(unique, key=lambda op: (0 if split_prefix(op)[1] is RouteKind.LIST else 1, op.lower()))


def companion_list_operation(add_operation: str, catalog: Iterable[str]) -> str:
    """Name of the ``list*`` operation backing the GET companion of ``add*``.

    ``addLine`` resolves to ``listLine`` or ``listLines``, whichever the
    catalog carries; ``listLine`` when neither is present.
    """
    resource = add_operation[len("add"):]
    known = {op.lower(): op for op in catalog}
    for candidate in (f"list{resource}", f"list{resource}s"):
        if candidate.lower() in known:
            return known[candidate.lower()]
    return f"list{resource}"


def build_routes(
    operations: Iterable[str],
    *,
    add_method: str = "POST",
) -> list[BoundRoute]:
    """Derive the ordered route list for a catalog, first-registered-wins."""
    catalog = list(operations)
    routes: list[BoundRoute] = []
    seen: set[tuple[str, str]] = set()

    def bind(bound: BoundRoute) -> None:
        key = (bound.http_method, bound.pattern)
        if key in seen:
            logger.debug(
                "Skipping %s %s for %s: already bound",
                bound.http_method,
                bound.pattern,
                bound.operation,
            )
            return
        seen.add(key)
        routes.append(bound)

    for operation in registration_order(catalog):
        route = classify(operation, add_method)

        if not route.requires_path_parameter:
            bind(BoundRoute(route.http_method, route.path(), route, route))

        if route.kind is RouteKind.ADD:
            target = classify(companion_list_operation(operation, catalog), add_method)
            bind(BoundRoute("GET", route.path(), target, route))

        if route.accepts_path_parameter:
            bind(BoundRoute(route.http_method, route.parameter_path(), route, route, parameterized=True))

    return routes


class RouteRegistrar:
    """Builds the route table and documentation model from the backend catalog.

    Re-runnable: ``regenerate()`` fetches the catalog again and swaps both the
    route table and the documentation model in one step each.
    """

    def __init__(
        self,
        backend: OperationBackend,
        store: DocumentationStore,
        *,
        base: str = "/api/rpc",
        add_method: str = "POST",
        examples: ExampleLookup | None = None,
    ) -> None:
        self.backend = backend
        self.store = store
        self.base = base
        self.add_method = add_method
        self.examples = examples
        self._table = RouteTable()

    @property
    def table(self) -> RouteTable:
        return self._table

    def build(self, operations: Iterable[str]) -> tuple[RouteTable, DocumentationModel]:
        """Pure build step: catalog in, route table and documentation model out."""
        table = RouteTable(build_routes(operations, add_method=self.add_method))
        builder = DocumentationBuilder(self.base, examples=self.examples)
        for bound in table:
            builder.add(bound)
        return table, builder.build()

    def install(self, operations: Iterable[str]) -> RouteTable:
        """Build from a known catalog and swap the results in."""
        operations = list(operations)
        table, model = self.build(operations)
        self._table = table
        self.store.swap(model)
        logger.info(
            "Registered %d routes for %d operations under %s",
            len(table),
            len(table.operations),
            self.base,
        )
        return table

    async def regenerate(self) -> RouteTable:
        """Fetch the catalog and rebuild routes and documentation.

        A catalog failure leaves zero dynamic routes in place instead of
        raising, so static and documentation endpoints stay reachable.
        """
        try:
            operations = await self.backend.list_operations()
        except Exception:
            logger.exception("Could not retrieve the operation catalog; no dynamic routes registered")
            operations = []
        return self.install(operations)


__all__ = [
    "BoundRoute",
    "RouteMatch",
    "RouteRegistrar",
    "RouteTable",
    "build_routes",
    "companion_list_operation",
    "registration_order",
]
