"""Blueprints for flask-rpcrest."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import Blueprint

if TYPE_CHECKING:
    from flask_rpcrest.config import RpcRestSettings


def create_api_blueprint(settings: RpcRestSettings) -> Blueprint:
    bp = Blueprint("rpcrest_api", __name__, url_prefix=settings.base_path)

    from flask_rpcrest.web.api import register_api_routes, register_error_handlers

    register_api_routes(bp)
    register_error_handlers(bp)

    return bp


def create_docs_blueprint(settings: RpcRestSettings) -> Blueprint:
    bp = Blueprint("rpcrest_docs", __name__)

    from flask_rpcrest.web.views import register_view_routes

    register_view_routes(bp, docs_url=settings.docs_url, explorer_url=settings.explorer_url)

    return bp
