"""Line directory demo application for flask-rpcrest.

Demonstrates:
- @module functions named after the get/list/add/update/remove convention
- REST routes derived from those names under /api/demo
- Generated OpenAPI document at /api-docs.json and Swagger UI at /api-explorer
- Observability (tracing, metrics, structured logging) on the apcore executor

Run with ``flask --app app run`` from this directory, then try::

    curl localhost:5000/api/demo/lines
    curl localhost:5000/api/demo/lines/name/10%
    curl -X POST localhost:5000/api/demo/line -H 'Content-Type: application/json' \\
         -d '{"name": "2001", "description": "Lobby"}'
"""
from __future__ import annotations

import fnmatch
import uuid

from flask import Flask
from pydantic import BaseModel

from flask_rpcrest import RpcRest
from apcore import module


# ---------------------------------------------------------------------------
# Pydantic models (drive the argument shapes reported to flask-rpcrest)
# ---------------------------------------------------------------------------

class LineSearch(BaseModel):
    name: str = ""
    description: str = ""
    customerName: str = ""


class LineIn(BaseModel):
    name: str
    description: str = ""


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

_lines: dict[str, dict] = {}


def _store(name: str, description: str) -> dict:
    line = {"uuid": str(uuid.uuid4()), "name": name, "description": description}
    _lines[line["uuid"]] = line
    return line


_store("1001", "Reception")
_store("1002", "Conference room")


def _as_dict(value) -> dict:
    if isinstance(value, BaseModel):
        return value.model_dump()
    return dict(value or {})


def _like(value: str, pattern: str) -> bool:
    return fnmatch.fnmatchcase(value, (pattern or "%").replace("%", "*"))


def _find(uuid: str = "", name: str = "") -> dict:
    for line in _lines.values():
        if (uuid and line["uuid"] == uuid) or (name and line["name"] == name):
            return line
    raise LookupError(f"Line not found (uuid={uuid!r}, name={name!r})")


# ---------------------------------------------------------------------------
# Flask app + config (RpcRest init deferred to end of file)
# ---------------------------------------------------------------------------

app = Flask(__name__)
app.config.update(
    RPCREST_NAMESPACE="demo",
    RPCREST_MODULE_PACKAGES=["app"],
    RPCREST_EXAMPLES_DIR="examples/",
    RPCREST_API_TITLE="Line Directory API",
    RPCREST_TRACING_ENABLED=True,
    RPCREST_TRACING_EXPORTER="stdout",
    RPCREST_METRICS_ENABLED=True,
    RPCREST_LOGGING_ENABLED=True,
    RPCREST_LOGGING_FORMAT="json",
)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

@module(id="listLines")
def list_lines(searchCriteria: LineSearch) -> dict:
    """List lines matching the search criteria (% is a wildcard)."""
    criteria = _as_dict(searchCriteria)
    found = [
        line for line in _lines.values()
        if _like(line["name"], criteria.get("name", "%"))
        and _like(line["description"], criteria.get("description", "%"))
    ]
    return {"line": found}


@module(id="getLine")
def get_line(uuid: str = "", name: str = "") -> dict:
    """Get a single line by uuid or name."""
    return {"line": _find(uuid, name)}


@module(id="addLine")
def add_line(line: LineIn) -> dict:
    """Create a line and return its uuid."""
    data = _as_dict(line)
    if any(existing["name"] == data["name"] for existing in _lines.values()):
        raise ValueError(f"Line {data['name']} already exists")
    return {"uuid": _store(data["name"], data.get("description", ""))["uuid"]}


@module(id="updateLine")
def update_line(uuid: str = "", name: str = "", description: str | None = None) -> dict:
    """Update the description of a line."""
    line = _find(uuid, name)
    if description is not None:
        line["description"] = description
    return {"uuid": line["uuid"]}


@module(id="removeLine")
def remove_line(uuid: str = "", name: str = "") -> dict:
    """Delete a line."""
    line = _find(uuid, name)
    del _lines[line["uuid"]]
    return {"uuid": line["uuid"]}


@module(id="resetLine")
def reset_line(uuid: str = "", name: str = "") -> dict:
    """Restore the default description of a line."""
    line = _find(uuid, name)
    line["description"] = ""
    return {"uuid": line["uuid"]}


# ---------------------------------------------------------------------------
# Initialize RpcRest AFTER all @module functions are defined,
# so that the package scan finds them.
# ---------------------------------------------------------------------------

RpcRest(app)
