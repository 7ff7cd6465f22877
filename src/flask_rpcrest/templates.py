"""Template-marker substitution over transformed argument trees.

A nested object keyed by the data identifier (default ``_data``) supplies
values for ``%%_name_%%`` markers found in the string values of the object
that contains it (recursively). The data object is removed afterwards::

    {"pattern": "%%_ext_%%", "_data": {"ext": "1001"}}  ->  {"pattern": "1001"}

Markers without a matching value are left untouched.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger("flask_rpcrest")

DEFAULT_DATA_IDENTIFIER = "_data"

_MARKER = re.compile(r"%%_([^%]+)_%%")


def has_template_data(arguments: Any, identifier: str = DEFAULT_DATA_IDENTIFIER) -> bool:
    """Cheap check on the serialized tree for a data container key."""
    try:
        serialized = json.dumps(arguments, default=str)
    except (TypeError, ValueError):
        return False
    return f'"{identifier}"' in serialized


def substitute_templates(arguments: Any, identifier: str = DEFAULT_DATA_IDENTIFIER) -> Any:
    """Substitute template markers in place and return the same tree.

    Args:
        arguments: Final argument tree (dicts/lists/scalars).
        identifier: Key of the nested data object.

    Returns:
        The (mutated) argument tree.
    """
    if not has_template_data(arguments, identifier):
        return arguments

    containers: list[dict[str, Any]] = []
    _find_containers(arguments, identifier, containers)
    logger.debug("Found %d template data container(s)", len(containers))

    for container in containers:
        values = container.get(identifier)
        _substitute_in(container, values, identifier)
        del container[identifier]

    return arguments


def substitute_string(value: str, values: dict[str, Any]) -> str:
    """Replace every ``%%_name_%%`` marker in ``value`` from ``values``."""

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in values or values[name] is None:
            return match.group(0)
        replacement = values[name]
        if isinstance(replacement, str):
            # Collapse escaped backslashes
            return replacement.replace("\\\\", "\\")
        if isinstance(replacement, bool):
            return "true" if replacement else "false"
        return str(replacement)

    return _MARKER.sub(_replace, value)


def _find_containers(node: Any, identifier: str, found: list[dict[str, Any]]) -> None:
    if isinstance(node, dict):
        if identifier in node:
            found.append(node)
        for key, child in node.items():
            if key == identifier:
                continue
            _find_containers(child, identifier, found)
    elif isinstance(node, list):
        for child in node:
            _find_containers(child, identifier, found)


def _substitute_in(node: Any, values: Any, identifier: str) -> None:
    if not isinstance(values, dict):
        logger.debug("Skipping template container: data is not an object")
        return
    if isinstance(node, dict):
        for key, child in node.items():
            if key == identifier:
                continue
            if isinstance(child, str):
                if "%%_" in child:
                    node[key] = substitute_string(child, values)
            else:
                _substitute_in(child, values, identifier)
    elif isinstance(node, list):
        for index, child in enumerate(node):
            if isinstance(child, str):
                if "%%_" in child:
                    node[index] = substitute_string(child, values)
            else:
                _substitute_in(child, values, identifier)
