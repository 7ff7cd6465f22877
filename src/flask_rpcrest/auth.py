"""Credential checks guarding the operation namespace.

A credential check is any callable taking the Flask request and raising
Unauthenticated when the request must be rejected. The built-in ApiKeyCheck
compares a key from a header or query parameter; a custom class can be
configured through ``RPCREST_CREDENTIAL_CHECK`` (dotted path).
"""

from __future__ import annotations

import hmac
import importlib
import logging
from typing import TYPE_CHECKING, Any, Callable

from flask_rpcrest.errors import Unauthenticated

if TYPE_CHECKING:
    from flask import Request

    from flask_rpcrest.config import RpcRestSettings

logger = logging.getLogger("flask_rpcrest")

CredentialCheck = Callable[["Request"], Any]


class ApiKeyCheck:
    """Require a static API key in a header or query parameter."""

    def __init__(self, api_key: str, name: str = "x-api-key", location: str = "header") -> None:
        self.api_key = api_key
        self.name = name
        self.location = location

    def __call__(self, request: Request) -> None:
        if self.location == "query":
            supplied = request.args.get(self.name)
            where = "query parameter"
        else:
            supplied = request.headers.get(self.name)
            where = "header"

        if not supplied:
            logger.debug("API key missing in %s", where)
            raise Unauthenticated(f"API key is required. Please provide it in the {where} '{self.name}'")

        if not hmac.compare_digest(supplied.encode(), self.api_key.encode()):
            logger.debug("Invalid API key provided in %s", where)
            raise Unauthenticated("Invalid API key provided. Please check your credentials.")


def resolve_credential_check(settings: RpcRestSettings) -> CredentialCheck | None:
    """Build the configured credential check, or None when none is configured.

    ``RPCREST_CREDENTIAL_CHECK`` wins over the built-in API key check.
    """
    if settings.credential_check is not None:
        module_path, class_name = settings.credential_check.rsplit(".", 1)
        mod = importlib.import_module(module_path)
        cls = getattr(mod, class_name)
        logger.debug("Using credential check %s", settings.credential_check)
        return cls()

    if settings.api_key is not None:
        return ApiKeyCheck(settings.api_key, settings.api_key_name, settings.api_key_location)

    return None
