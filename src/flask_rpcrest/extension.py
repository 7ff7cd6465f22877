"""Flask Extension exposing an RPC backend as a REST API.

Provides the RpcRest class following Flask's Extension pattern.

init_app flow:
1. load_settings(app)
2. Resolve the backend (argument, RPCREST_BACKEND, or an apcore registry)
3. Create the documentation store, example store, registrar and executor
4. Store everything in app.extensions["rpcrest"]
5. Register the namespace blueprint, the docs blueprint and the CLI group
6. If RPCREST_AUTO_REGISTER: fetch the catalog and build routes + docs
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flask import Flask

    from flask_rpcrest.backends import OperationBackend
    from flask_rpcrest.config import RpcRestSettings
    from flask_rpcrest.examples import ExampleLookup

from flask_rpcrest.auth import resolve_credential_check
from flask_rpcrest.config import load_settings
from flask_rpcrest.docs import DocumentationStore
from flask_rpcrest.examples import FileExampleStore
from flask_rpcrest.executor import OperationExecutor
from flask_rpcrest.observability import setup_observability
from flask_rpcrest.registry import get_registrar, get_state
from flask_rpcrest.routing import RouteRegistrar

logger = logging.getLogger("flask_rpcrest")


class RpcRest:
    """Flask Extension deriving REST routes from backend operation names.

    Usage (direct):
        app = Flask(__name__)
        rpcrest = RpcRest(app, backend=MySoapBackend())

    Usage (factory pattern):
        rpcrest = RpcRest()

        def create_app():
            app = Flask(__name__)
            rpcrest.init_app(app)
            return app

    Without a backend, an apcore Registry is created and every
    ``@module`` function found in RPCREST_MODULE_PACKAGES becomes an
    operation.
    """

    def __init__(
        self,
        app: Flask | None = None,
        *,
        backend: OperationBackend | None = None,
        examples: ExampleLookup | None = None,
    ) -> None:
        """Initialize the extension.

        Args:
            app: Flask application instance. If provided, init_app()
                 is called immediately.
            backend: Operation backend; overrides RPCREST_BACKEND.
            examples: Example lookup for the documentation, also used for
                saving examples when it has a ``save`` method; defaults to
                a FileExampleStore over RPCREST_EXAMPLES_DIR.
        """
        self.backend = backend
        self.examples = examples
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Initialize the extension with a Flask application.

        Args:
            app: Flask application instance.

        Raises:
            ValueError: If any RPCREST_* config value is invalid.
        """
        settings = load_settings(app)

        ext_data: dict[str, Any] = {
            "settings": settings,
            "registry": None,
            "observability_middlewares": [],
            "metrics_collector": None,
        }
        backend = self._resolve_backend(app, settings, ext_data)

        examples = self.examples
        if examples is None:
            examples = FileExampleStore(settings.examples_dir, settings.add_http_method)
        documentation = DocumentationStore()
        registrar = RouteRegistrar(
            backend,
            documentation,
            base=settings.base_path,
            add_method=settings.add_http_method,
            examples=examples,
        )
        executor = OperationExecutor(
            backend,
            options=settings.transform_options(),
            fault_error_code=settings.fault_error_code,
        )

        ext_data.update(
            {
                "backend": backend,
                "documentation": documentation,
                "examples": examples,
                "registrar": registrar,
                "executor": executor,
                "credential_check": resolve_credential_check(settings),
            }
        )
        app.extensions["rpcrest"] = ext_data

        from flask_rpcrest.web import create_api_blueprint, create_docs_blueprint

        app.register_blueprint(create_api_blueprint(settings))
        if settings.docs_enabled:
            app.register_blueprint(create_docs_blueprint(settings))

        from flask_rpcrest.cli import rpcrest_cli

        app.cli.add_command(rpcrest_cli)

        logger.debug("flask-rpcrest initialized for app %s under %s", app.name, settings.base_path)

        if settings.auto_register:
            app.ensure_sync(registrar.regenerate)()
        else:
            logger.debug("Route registration deferred (RPCREST_AUTO_REGISTER=False)")

    def _resolve_backend(self, app: Flask, settings: RpcRestSettings, ext_data: dict[str, Any]) -> Any:
        if self.backend is not None:
            return self.backend

        if settings.backend is not None:
            from flask_rpcrest.backends import resolve_backend

            return resolve_backend(settings.backend)

        from apcore import Registry

        from flask_rpcrest.backends.registry import RegistryBackend

        registry = Registry()
        if settings.module_packages:
            self._scan_packages_for_modules(registry, settings.module_packages)
        logger.info("flask-rpcrest: %d apcore modules registered", len(list(registry.module_ids)))

        ext_data["registry"] = registry
        middlewares = setup_observability(settings, ext_data)
        return RegistryBackend(registry, middlewares=middlewares, app=app)

    def _scan_packages_for_modules(self, registry: Any, packages: list[str]) -> None:
        """Register every ``@module``-decorated function found in ``packages``.

        Args:
            registry: The apcore Registry to register modules into.
            packages: List of dotted Python package paths to scan.
        """
        for package_name in packages:
            try:
                mod = importlib.import_module(package_name)
            except ImportError:
                logger.warning("Package %s not found; skipping module scan", package_name)
                continue

            for attr_name in dir(mod):
                obj = getattr(mod, attr_name)
                if not (callable(obj) and hasattr(obj, "apcore_module")):
                    continue
                try:
                    fm = obj.apcore_module
                    registry.register(fm.module_id, fm)
                    logger.debug("Registered @module function: %s.%s", package_name, attr_name)
                except Exception:
                    logger.warning(
                        "Failed to register module from %s.%s",
                        package_name,
                        attr_name,
                        exc_info=True,
                    )

    def regenerate(self, app: Flask | None = None) -> int:
        """Re-fetch the catalog and rebuild routes and docs; returns the route count."""
        registrar = get_registrar(app)
        if app is None:
            from flask import current_app

            app = current_app._get_current_object()
        table = app.ensure_sync(registrar.regenerate)()
        return len(table)

    def get_backend(self, app: Flask | None = None) -> Any:
        """Return the operation backend for the given app (current_app if None)."""
        return get_state(app)["backend"]
