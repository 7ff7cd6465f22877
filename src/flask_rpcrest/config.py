"""RPCREST_* settings resolution and validation.

Reads all RPCREST_* settings from Flask's app.config, applies defaults,
validates types and values, and exposes a frozen dataclass for internal use.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from flask_rpcrest.naming import VALID_ADD_METHODS
from flask_rpcrest.transform import TransformOptions

if TYPE_CHECKING:
    from flask import Flask

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_NAMESPACE = "rpc"
DEFAULT_ADD_HTTP_METHOD = "POST"
DEFAULT_WILDCARD = "%"
DEFAULT_SEARCH_CRITERIA_KEY = "searchCriteria"
DEFAULT_EXCLUDED_SEARCH_FIELDS = ["customerName"]
DEFAULT_DATA_IDENTIFIER = "_data"
DEFAULT_FAULT_ERROR_CODE = "AXL_ERROR"
DEFAULT_EXAMPLES_DIR = "examples/"
DEFAULT_AUTO_REGISTER = True

# Credential check defaults
DEFAULT_API_KEY_NAME = "x-api-key"
DEFAULT_API_KEY_LOCATION = "header"

# Documentation defaults
DEFAULT_DOCS_ENABLED = True
DEFAULT_DOCS_URL = "/api-docs.json"
DEFAULT_EXPLORER_URL = "/api-explorer"
DEFAULT_API_TITLE = "RPC REST API"
DEFAULT_API_VERSION = "1.0.0"
DEFAULT_API_DESCRIPTION = "REST interface derived from the operation names of an RPC backend"

# Observability defaults
DEFAULT_TRACING_ENABLED = False
DEFAULT_TRACING_EXPORTER = "stdout"
DEFAULT_TRACING_SERVICE_NAME = "flask-rpcrest"
DEFAULT_METRICS_ENABLED = False
DEFAULT_LOGGING_ENABLED = False
DEFAULT_LOGGING_FORMAT = "json"
DEFAULT_LOGGING_LEVEL = "INFO"

# ---------------------------------------------------------------------------
# Valid choices
# ---------------------------------------------------------------------------
VALID_API_KEY_LOCATIONS = ("header", "query")
VALID_TRACING_EXPORTERS = ("stdout", "memory", "otlp")
VALID_LOGGING_FORMATS = ("json", "text")
VALID_LOGGING_LEVELS = ("trace", "debug", "info", "warn", "error", "fatal")

_NAMESPACE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True)
class RpcRestSettings:
    """Validated RPCREST_* settings.

    All fields are immutable after validation. Created by load_settings().
    """

    # Dispatch
    namespace: str
    add_http_method: str
    wildcard: str
    search_criteria_key: str
    excluded_search_fields: list[str]
    data_identifier: str
    fault_error_code: str
    examples_dir: str

    # Backend
    backend: str | None
    module_packages: list[str]
    auto_register: bool

    # Credential check
    credential_check: str | None
    api_key: str | None
    api_key_name: str
    api_key_location: str

    # Documentation
    docs_enabled: bool
    docs_url: str
    explorer_url: str
    api_title: str
    api_version: str
    api_description: str

    # Observability
    tracing_enabled: bool
    tracing_exporter: str
    tracing_otlp_endpoint: str | None
    tracing_service_name: str
    metrics_enabled: bool
    metrics_buckets: list[float] | None
    logging_enabled: bool
    logging_format: str
    logging_level: str

    @property
    def base_path(self) -> str:
        """URL prefix of all operation routes, e.g. ``/api/rpc``."""
        return f"/api/{self.namespace}"

    def transform_options(self) -> TransformOptions:
        return TransformOptions(
            wildcard=self.wildcard,
            search_criteria_key=self.search_criteria_key,
            excluded_search_fields=tuple(self.excluded_search_fields),
            data_identifier=self.data_identifier,
        )


def _non_empty_string(app: Flask, key: str, default: str) -> str:
    value = app.config.get(key, default)
    if value is None:
        value = default
    if not isinstance(value, str) or len(value) == 0:
        raise ValueError(f"{key} must be a non-empty string.")
    return value


def _boolean(app: Flask, key: str, default: bool) -> bool:
    value = app.config.get(key, default)
    if value is None:
        value = default
    if not isinstance(value, bool):
        actual = type(value).__name__
        raise ValueError(f"{key} must be a boolean. Got: {actual}")
    return value


def _string_list(app: Flask, key: str, default: list[str], what: str = "strings") -> list[str]:
    value = app.config.get(key, default)
    if value is None:
        value = list(default)
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{key} must be a list of {what}.")
    return list(value)


def _optional_string(app: Flask, key: str, what: str = "a string") -> str | None:
    value = app.config.get(key, None)
    if value is not None and not isinstance(value, str):
        actual = type(value).__name__
        raise ValueError(f"{key} must be {what}. Got: {actual}")
    return value


def _url_path(app: Flask, key: str, default: str) -> str:
    value = _non_empty_string(app, key, default)
    if not value.startswith("/"):
        raise ValueError(f"{key} must start with '/'. Got: '{value}'")
    return value


def load_settings(app: Flask) -> RpcRestSettings:
    """Read and validate RPCREST_* settings from app.config.

    Each Flask config key is ``RPCREST_`` + uppercase field name
    (e.g. ``RPCREST_NAMESPACE``).  ``None`` values fall back to defaults.

    Args:
        app: Flask application instance.

    Returns:
        Validated, frozen RpcRestSettings dataclass.

    Raises:
        ValueError: If any setting is invalid.
    """
    # === Dispatch ===

    # --- namespace ---
    namespace = _non_empty_string(app, "RPCREST_NAMESPACE", DEFAULT_NAMESPACE)
    if not _NAMESPACE_PATTERN.match(namespace):
        raise ValueError(
            f"RPCREST_NAMESPACE may only contain letters, digits, '_' and '-'. Got: '{namespace}'"
        )

    # --- add_http_method ---
    add_http_method = app.config.get("RPCREST_ADD_HTTP_METHOD", DEFAULT_ADD_HTTP_METHOD)
    if add_http_method is None:
        add_http_method = DEFAULT_ADD_HTTP_METHOD
    if not isinstance(add_http_method, str) or add_http_method.upper() not in VALID_ADD_METHODS:
        choices = ", ".join(VALID_ADD_METHODS)
        raise ValueError(f"RPCREST_ADD_HTTP_METHOD must be one of: {choices}." f" Got: '{add_http_method}'")
    add_http_method = add_http_method.upper()

    wildcard = _non_empty_string(app, "RPCREST_WILDCARD", DEFAULT_WILDCARD)
    search_criteria_key = _non_empty_string(app, "RPCREST_SEARCH_CRITERIA_KEY", DEFAULT_SEARCH_CRITERIA_KEY)
    excluded_search_fields = _string_list(
        app, "RPCREST_EXCLUDED_SEARCH_FIELDS", DEFAULT_EXCLUDED_SEARCH_FIELDS, what="field names"
    )
    data_identifier = _non_empty_string(app, "RPCREST_DATA_IDENTIFIER", DEFAULT_DATA_IDENTIFIER)
    fault_error_code = _non_empty_string(app, "RPCREST_FAULT_ERROR_CODE", DEFAULT_FAULT_ERROR_CODE)

    # --- examples_dir ---
    examples_dir = app.config.get("RPCREST_EXAMPLES_DIR", DEFAULT_EXAMPLES_DIR)
    if examples_dir is None:
        examples_dir = DEFAULT_EXAMPLES_DIR
    if not isinstance(examples_dir, (str, Path)):
        actual = type(examples_dir).__name__
        raise ValueError(f"RPCREST_EXAMPLES_DIR must be a string path. Got: {actual}")
    examples_dir = str(examples_dir)

    # === Backend ===

    backend = _optional_string(app, "RPCREST_BACKEND", "a dotted path string")
    module_packages = _string_list(app, "RPCREST_MODULE_PACKAGES", [], what="dotted path strings")
    auto_register = _boolean(app, "RPCREST_AUTO_REGISTER", DEFAULT_AUTO_REGISTER)

    # === Credential check ===

    credential_check = _optional_string(app, "RPCREST_CREDENTIAL_CHECK", "a dotted path string")

    # --- api_key ---
    api_key = app.config.get("RPCREST_API_KEY", None)
    if api_key is not None and (not isinstance(api_key, str) or len(api_key) == 0):
        raise ValueError("RPCREST_API_KEY must be a non-empty string if set.")

    api_key_name = _non_empty_string(app, "RPCREST_API_KEY_NAME", DEFAULT_API_KEY_NAME)

    # --- api_key_location ---
    api_key_location = app.config.get("RPCREST_API_KEY_LOCATION", DEFAULT_API_KEY_LOCATION)
    if api_key_location is None:
        api_key_location = DEFAULT_API_KEY_LOCATION
    if api_key_location not in VALID_API_KEY_LOCATIONS:
        choices = ", ".join(VALID_API_KEY_LOCATIONS)
        raise ValueError(f"RPCREST_API_KEY_LOCATION must be one of: {choices}." f" Got: '{api_key_location}'")

    # === Documentation ===

    docs_enabled = _boolean(app, "RPCREST_DOCS_ENABLED", DEFAULT_DOCS_ENABLED)
    docs_url = _url_path(app, "RPCREST_DOCS_URL", DEFAULT_DOCS_URL)
    explorer_url = _url_path(app, "RPCREST_EXPLORER_URL", DEFAULT_EXPLORER_URL)
    api_title = _non_empty_string(app, "RPCREST_API_TITLE", DEFAULT_API_TITLE)
    api_version = _non_empty_string(app, "RPCREST_API_VERSION", DEFAULT_API_VERSION)
    api_description = _non_empty_string(app, "RPCREST_API_DESCRIPTION", DEFAULT_API_DESCRIPTION)

    # === Observability ===

    tracing_enabled = _boolean(app, "RPCREST_TRACING_ENABLED", DEFAULT_TRACING_ENABLED)

    # --- tracing_exporter ---
    tracing_exporter = app.config.get("RPCREST_TRACING_EXPORTER", DEFAULT_TRACING_EXPORTER)
    if tracing_exporter is None:
        tracing_exporter = DEFAULT_TRACING_EXPORTER
    if tracing_exporter not in VALID_TRACING_EXPORTERS:
        choices = ", ".join(VALID_TRACING_EXPORTERS)
        raise ValueError(f"RPCREST_TRACING_EXPORTER must be one of: {choices}." f" Got: '{tracing_exporter}'")

    tracing_otlp_endpoint = _optional_string(app, "RPCREST_TRACING_OTLP_ENDPOINT")
    tracing_service_name = _non_empty_string(app, "RPCREST_TRACING_SERVICE_NAME", DEFAULT_TRACING_SERVICE_NAME)
    metrics_enabled = _boolean(app, "RPCREST_METRICS_ENABLED", DEFAULT_METRICS_ENABLED)

    # --- metrics_buckets ---
    metrics_buckets = app.config.get("RPCREST_METRICS_BUCKETS", None)
    if metrics_buckets is not None:
        if not isinstance(metrics_buckets, list) or not all(
            isinstance(b, (int, float)) and not isinstance(b, bool) for b in metrics_buckets
        ):
            raise ValueError("RPCREST_METRICS_BUCKETS must be a list of numeric values.")

    logging_enabled = _boolean(app, "RPCREST_LOGGING_ENABLED", DEFAULT_LOGGING_ENABLED)

    # --- logging_format ---
    logging_format = app.config.get("RPCREST_LOGGING_FORMAT", DEFAULT_LOGGING_FORMAT)
    if logging_format is None:
        logging_format = DEFAULT_LOGGING_FORMAT
    if logging_format not in VALID_LOGGING_FORMATS:
        choices = ", ".join(VALID_LOGGING_FORMATS)
        raise ValueError(f"RPCREST_LOGGING_FORMAT must be one of: {choices}." f" Got: '{logging_format}'")

    # --- logging_level ---
    logging_level = app.config.get("RPCREST_LOGGING_LEVEL", DEFAULT_LOGGING_LEVEL)
    if logging_level is None:
        logging_level = DEFAULT_LOGGING_LEVEL
    if not isinstance(logging_level, str):
        actual = type(logging_level).__name__
        raise ValueError(f"RPCREST_LOGGING_LEVEL must be a string. Got: {actual}")
    if logging_level.lower() not in VALID_LOGGING_LEVELS:
        choices = ", ".join(VALID_LOGGING_LEVELS)
        raise ValueError(f"RPCREST_LOGGING_LEVEL must be one of: {choices}." f" Got: '{logging_level}'")

    return RpcRestSettings(
        namespace=namespace,
        add_http_method=add_http_method,
        wildcard=wildcard,
        search_criteria_key=search_criteria_key,
        excluded_search_fields=excluded_search_fields,
        data_identifier=data_identifier,
        fault_error_code=fault_error_code,
        examples_dir=examples_dir,
        backend=backend,
        module_packages=module_packages,
        auto_register=auto_register,
        credential_check=credential_check,
        api_key=api_key,
        api_key_name=api_key_name,
        api_key_location=api_key_location,
        docs_enabled=docs_enabled,
        docs_url=docs_url,
        explorer_url=explorer_url,
        api_title=api_title,
        api_version=api_version,
        api_description=api_description,
        tracing_enabled=tracing_enabled,
        tracing_exporter=tracing_exporter,
        tracing_otlp_endpoint=tracing_otlp_endpoint,
        tracing_service_name=tracing_service_name,
        metrics_enabled=metrics_enabled,
        metrics_buckets=metrics_buckets,
        logging_enabled=logging_enabled,
        logging_format=logging_format,
        logging_level=logging_level,
    )
