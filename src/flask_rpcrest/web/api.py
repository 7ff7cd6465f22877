"""Namespace endpoints: administrative routes plus catalog-driven dispatch."""

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import BadRequest as WerkzeugBadRequest
from werkzeug.exceptions import HTTPException

from flask_rpcrest.auth import ApiKeyCheck
from flask_rpcrest.errors import BadRequest, InternalError, NotFound, RpcRestError
from flask_rpcrest.examples import save_example
from flask_rpcrest.registry import (
    get_backend,
    get_examples,
    get_executor,
    get_registrar,
    get_settings,
    get_state,
)
from flask_rpcrest.serializers import operation_endpoint, routes_to_dicts
from flask_rpcrest.transform import PathParameter, RequestData

logger = logging.getLogger("flask_rpcrest")

DISPATCH_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def read_json_body() -> Any:
    """Parsed JSON body of the current request, or None when it has none."""
    if not request.get_data(cache=True):
        return None
    try:
        return request.get_json(force=True)
    except WerkzeugBadRequest as exc:
        raise BadRequest(f"Invalid JSON in request body: {exc.description}") from exc


def request_data(path_parameter: PathParameter | None = None) -> RequestData:
    query = request.args.to_dict()
    # A query-string API key is a credential, never an operation argument.
    check = get_state().get("credential_check")
    if isinstance(check, ApiKeyCheck) and check.location == "query":
        query.pop(check.name, None)
    return RequestData(
        path_parameter=path_parameter,
        query=query,
        body=read_json_body(),
    )


def register_api_routes(bp: Blueprint) -> None:

    @bp.route("/methods")
    async def list_methods():
        settings = get_settings()
        try:
            operations = await get_backend().list_operations(request.args.get("filter") or None)
        except Exception as exc:
            logger.warning("Could not list operations: %s", exc)
            return jsonify(
                {
                    "count": 0,
                    "endpoints": [],
                    "error": f"Error retrieving operations. The backend may be unavailable: {exc}",
                }
            )
        endpoints = [
            operation_endpoint(op, settings.base_path, settings.add_http_method) for op in operations
        ]
        return jsonify({"count": len(endpoints), "endpoints": endpoints})

    @bp.route("/methods/<operation>/parameters")
    async def method_parameters(operation: str):
        backend = get_backend()
        if operation not in await backend.list_operations():
            raise NotFound(f"Operation '{operation}' not found", operation=operation)
        parameters = await backend.get_argument_shape(operation)
        return jsonify({"method": operation, "parameters": parameters})

    @bp.route("/debug/operations")
    async def debug_operations():
        needle = (request.args.get("filter") or "").lower()
        operations = await get_backend().list_operations()
        if needle:
            operations = [op for op in operations if needle in op.lower()]
        return jsonify({"count": len(operations), "operations": operations})

    @bp.route("/debug/routes")
    def debug_routes():
        settings = get_settings()
        routes = routes_to_dicts(get_registrar().table, settings.base_path)
        return jsonify({"routeCount": len(routes), "routes": routes})

    @bp.route("/docs/regenerate", methods=["POST"])
    async def regenerate_docs():
        registrar = get_registrar()
        table = await registrar.regenerate()
        model = registrar.store.model
        return jsonify(
            {
                "message": "Routes and documentation regenerated",
                "operationCount": len(table.operations),
                "routeCount": len(table),
                "documentedRoutes": model.entry_count,
            }
        )

    @bp.route("/examples/<operation>", methods=["POST"])
    def save_operation_example(operation: str):
        default = request.args.get("default", "").lower() in ("1", "true", "yes")
        try:
            path = save_example(get_examples(), operation, read_json_body(), default=default)
        except ValueError as exc:
            raise BadRequest(str(exc), operation=operation) from exc
        return jsonify({"status": "success", "message": f"Saved example to {path}", "operation": operation})

    @bp.route("/", defaults={"subpath": ""}, methods=DISPATCH_METHODS)
    @bp.route("/<path:subpath>", methods=DISPATCH_METHODS)
    async def dispatch(subpath: str):
        match = get_registrar().table.match(request.method, subpath)
        if match is None:
            raise NotFound(f"No operation route for {request.method} {request.path}")
        logger.debug("%s %s -> %s", request.method, request.path, match.bound.operation)
        body, status = await get_executor().handle(match.bound.route, request_data(match.path_parameter))
        return jsonify(body), status


def register_error_handlers(bp: Blueprint) -> None:

    @bp.before_request
    def check_credentials():
        check = current_app.extensions["rpcrest"].get("credential_check")
        if check is not None:
            check(request)

    @bp.errorhandler(RpcRestError)
    def handle_rpcrest_error(exc: RpcRestError):
        return jsonify(exc.to_dict(request.path)), exc.status_code

    @bp.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        code = exc.code or 500
        error = (exc.name or "ERROR").upper().replace(" ", "_")
        body = {"error": error, "message": exc.description, "statusCode": code, "path": request.path}
        return jsonify(body), code

    @bp.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        error = InternalError(str(exc) or type(exc).__name__)
        return jsonify(error.to_dict(request.path)), error.status_code
