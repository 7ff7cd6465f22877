"""App-scoped accessors for flask-rpcrest state.

State lives per app in ``app.extensions["rpcrest"]`` rather than in module
globals, so several Flask apps (tests, multi-tenant setups) can each own a
backend, route table, and documentation store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from flask import current_app

if TYPE_CHECKING:
    from flask import Flask

    from flask_rpcrest.backends import OperationBackend
    from flask_rpcrest.config import RpcRestSettings
    from flask_rpcrest.docs import DocumentationStore
    from flask_rpcrest.examples import ExampleLookup
    from flask_rpcrest.executor import OperationExecutor
    from flask_rpcrest.routing import RouteRegistrar


def get_state(app: Flask | None = None) -> dict[str, Any]:
    """Return the extension state dict for the given (or current) app.

    Raises:
        RuntimeError: If flask-rpcrest is not initialized or there is no
            application context.
    """
    if app is None:
        app = current_app._get_current_object()
    ext_data = app.extensions.get("rpcrest")
    if ext_data is None:
        raise RuntimeError("flask-rpcrest not initialized. " "Call RpcRest(app) or rpcrest.init_app(app) first.")
    return ext_data


def get_settings(app: Flask | None = None) -> RpcRestSettings:
    return get_state(app)["settings"]


def get_backend(app: Flask | None = None) -> OperationBackend:
    return get_state(app)["backend"]


def get_registrar(app: Flask | None = None) -> RouteRegistrar:
    return get_state(app)["registrar"]


def get_executor(app: Flask | None = None) -> OperationExecutor:
    return get_state(app)["executor"]


def get_documentation(app: Flask | None = None) -> DocumentationStore:
    return get_state(app)["documentation"]


def get_examples(app: Flask | None = None) -> ExampleLookup:
    return get_state(app)["examples"]
