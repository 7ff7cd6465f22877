"""Example payloads for the generated documentation.

The documentation synthesizer asks an ExampleLookup for request-body examples
per resource and HTTP verb. FileExampleStore is the built-in lookup, backed by
a directory tree that is re-read on every call (new files appear without a
restart)::

    <examples_dir>/
        resources/<resource>/<verb>/*.json|*.yaml|*.yml   resource-specific
        generic/<verb>/*.json|*.yaml|*.yml                any resource

Each file holds one example: ``{"summary": ..., "description": ..., "value": ...}``.
In generic examples a top-level ``resourceTag`` key inside ``value`` is renamed
to the real wrapper tag of the resource. When neither directory yields an
example, hard-coded defaults by verb are returned.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Protocol

import yaml
from pydantic import BaseModel, ValidationError

from flask_rpcrest.naming import RouteKind, classify

logger = logging.getLogger("flask_rpcrest")

EXAMPLE_SUFFIXES = (".json", ".yaml", ".yml")
RESOURCE_TAG_PLACEHOLDER = "resourceTag"
PLACEHOLDER_UUID = "12345678-1234-1234-1234-123456789012"


class Example(BaseModel):
    """One documented request-body example."""

    summary: str | None = None
    description: str | None = None
    value: Any = None


class ExampleLookup(Protocol):
    """Collaborator consulted while building the documentation model."""

    def lookup(
        self,
        resource: str,
        http_method: str,
        *,
        resource_tag: str | None = None,
        operation: str | None = None,
    ) -> list[Example] | None: ...


class FileExampleStore:
    """Filesystem-backed ExampleLookup with resource -> generic -> default fallback."""

    def __init__(self, examples_dir: str | Path, add_method: str = "POST") -> None:
        self.examples_dir = Path(examples_dir)
        self.add_method = add_method

    def lookup(
        self,
        resource: str,
        http_method: str,
        *,
        resource_tag: str | None = None,
        operation: str | None = None,
    ) -> list[Example]:
        """Return examples for ``resource`` and ``http_method``.

        Args:
            resource: URL resource segment (e.g. ``"line"``).
            http_method: HTTP verb, any case.
            resource_tag: Case-preserving wrapper tag; defaults to ``resource``.
            operation: Operation name, used to pick command defaults.

        Returns:
            A non-empty list of examples.
        """
        verb = http_method.lower()
        tag = resource_tag or resource

        if resource:
            found = self._load_dir(self.examples_dir / "resources" / resource.lower() / verb)
            if found:
                logger.debug("Using %d resource example(s) for %s %s", len(found), verb, resource)
                return found

        generic = self._load_dir(self.examples_dir / "generic" / verb)
        if generic:
            logger.debug("Using %d generic example(s) for %s %s", len(generic), verb, resource)
            return [_apply_resource_tag(example, tag) for example in generic]

        return default_examples(verb, tag, operation)

    def directory_for(self, operation: str) -> Path:
        """Resource/verb directory an operation's examples live in."""
        route = classify(operation, self.add_method)
        return self.examples_dir / "resources" / route.segment / route.http_method.lower()

    def save(self, operation: str, payload: Any, *, default: bool = False) -> Path:
        """Write ``payload`` as an example file for ``operation``.

        Args:
            operation: Operation name, e.g. ``"addLine"``.
            payload: Request body to store as the example value.
            default: Write ``default.json`` (explorer default) instead of
                ``<operation>.json``.

        Returns:
            Path of the written file.

        Raises:
            ValueError: If ``operation`` is empty or is served over GET, whose
                routes carry no request body examples.
        """
        if not operation:
            raise ValueError("Operation name is required")
        if classify(operation, self.add_method).http_method == "GET":
            raise ValueError(f"Operation '{operation}' is served over GET and takes no request body examples")

        if isinstance(payload, str) and payload.strip()[:1] in ("{", "["):
            try:
                payload = json.loads(payload)
            except ValueError:
                logger.debug("Example payload for %s is not JSON; storing as-is", operation)

        directory = self.directory_for(operation)
        directory.mkdir(parents=True, exist_ok=True)

        if default:
            path = directory / "default.json"
            example = Example(
                summary=f"{operation} Default Example",
                description=f"Default example generated from the parameter shape of {operation}",
                value=payload,
            )
        else:
            path = directory / f"{operation.lower()}.json"
            example = Example(
                summary=f"{operation} Example",
                description=f"Example saved from a request to {operation}",
                value=payload if payload is not None else {},
            )

        path.write_text(json.dumps(example.model_dump(), indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Saved example for %s to %s", operation, path)
        return path

    def _load_dir(self, directory: Path) -> list[Example]:
        if not directory.is_dir():
            return []
        examples = []
        for path in sorted(directory.iterdir()):
            if path.suffix.lower() not in EXAMPLE_SUFFIXES:
                continue
            example = _load_file(path)
            if example is not None:
                examples.append(example)
        return examples


def save_example(store: ExampleLookup, operation: str, payload: Any, *, default: bool = False) -> Path:
    """Save an example through ``store``.

    Raises:
        ValueError: If ``store`` cannot save examples, or rejects the operation.
    """
    save = getattr(store, "save", None)
    if save is None:
        raise ValueError(f"Example store {type(store).__name__} does not support saving examples")
    return save(operation, payload, default=default)


def _load_file(path: Path) -> Example | None:
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
        return Example.model_validate(data)
    except (OSError, ValueError, yaml.YAMLError, ValidationError):
        logger.warning("Skipping unreadable example file %s", path, exc_info=True)
        return None


def _apply_resource_tag(example: Example, tag: str) -> Example:
    value = copy.deepcopy(example.value)
    if isinstance(value, dict) and RESOURCE_TAG_PLACEHOLDER in value:
        value[tag] = value.pop(RESOURCE_TAG_PLACEHOLDER)
    return example.model_copy(update={"value": value})


def default_examples(http_method: str, resource_tag: str, operation: str | None = None) -> list[Example]:
    """Built-in examples used when no file provides one."""
    verb = http_method.lower()

    if operation:
        route = classify(operation)
        if route.kind is RouteKind.COMMAND:
            return _command_examples(route.prefix)
        if route.kind is RouteKind.FALLBACK:
            verb = "other"

    if verb in ("post", "put"):
        return [
            Example(
                summary="With resource wrapper (required)",
                description="For add operations, wrap the payload in the exact camelCase resource tag",
                value={resource_tag: {"name": "Example-Name", "description": "Example created using the REST API"}},
            )
        ]
    if verb == "patch":
        return [
            Example(
                summary="Direct parameters (no wrapper)",
                description="For update operations, provide parameters directly without a resource wrapper",
                value={
                    "name": "Example-Name",
                    "description": "Example updated using the REST API",
                    "uuid": PLACEHOLDER_UUID,
                },
            )
        ]
    if verb == "delete":
        return [
            Example(
                summary="Identifier options for DELETE",
                description="Specify either name or uuid in the body, or use URL parameters",
                value={"name": "Example-Name", "uuid": ""},
            ),
            Example(
                summary="Delete by UUID",
                description="UUID is the most reliable identifier for DELETE operations",
                value={"uuid": PLACEHOLDER_UUID, "name": ""},
            ),
        ]
    return [
        Example(
            summary="Example request body",
            value={"name": "Example-Name", "description": "Example created using the REST API"},
        )
    ]


def _command_examples(prefix: str) -> list[Example]:
    title = prefix.capitalize()
    examples = [
        Example(
            summary=f"{title} by Name",
            description=f"Provide the name for {prefix} operations",
            value={"name": "Example-Name", "uuid": ""},
        ),
        Example(
            summary=f"{title} by UUID",
            description=f"UUID is the most reliable identifier for {prefix} operations",
            value={"uuid": PLACEHOLDER_UUID, "name": ""},
        ),
    ]
    if prefix == "do":
        examples.append(
            Example(
                summary="Empty request body",
                description="Some do operations can be called with an empty request body",
                value={},
            )
        )
    return examples
