"""apcore observability middlewares for the in-process registry backend.

Reads RpcRestSettings and builds tracing, metrics, and execution-logging
middlewares that RegistryBackend passes to its apcore Executor. Remote
backends ignore them; request logging there goes through the
``flask_rpcrest`` logger only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flask_rpcrest.config import RpcRestSettings

logger = logging.getLogger("flask_rpcrest")


def setup_observability(settings: RpcRestSettings, ext_data: dict[str, Any]) -> list[Any]:
    """Create observability middlewares from settings.

    Results are stored in *ext_data*:
    - ``ext_data["observability_middlewares"]``: list of middleware instances
    - ``ext_data["metrics_collector"]``: MetricsCollector instance (or None)

    Args:
        settings: Validated settings from load_settings().
        ext_data: Mutable dict that will be stored in app.extensions["rpcrest"].

    Returns:
        The middleware list (empty when everything is disabled).
    """
    middlewares: list[Any] = []
    metrics_collector = None

    if settings.tracing_enabled:
        middlewares.append(_tracing_middleware(settings))

    if settings.metrics_enabled:
        from apcore.observability.metrics import MetricsCollector, MetricsMiddleware

        if settings.metrics_buckets is not None:
            metrics_collector = MetricsCollector(buckets=settings.metrics_buckets)
        else:
            metrics_collector = MetricsCollector()
        middlewares.append(MetricsMiddleware(collector=metrics_collector))
        logger.debug("Observability: metrics enabled")

    if settings.logging_enabled:
        from apcore.observability.context_logger import ContextLogger, ObsLoggingMiddleware

        obs_logger = ContextLogger(
            name="flask_rpcrest.operations",
            output_format=settings.logging_format,
            level=settings.logging_level.lower(),
        )
        middlewares.append(ObsLoggingMiddleware(logger=obs_logger))
        logger.debug(
            "Observability: operation logging enabled (format=%s, level=%s)",
            settings.logging_format,
            settings.logging_level,
        )

    ext_data["observability_middlewares"] = middlewares
    ext_data["metrics_collector"] = metrics_collector
    return middlewares


def _tracing_middleware(settings: RpcRestSettings) -> Any:
    from apcore.observability.tracing import (
        InMemoryExporter,
        OTLPExporter,
        StdoutExporter,
        TracingMiddleware,
    )

    if settings.tracing_exporter == "memory":
        exporter = InMemoryExporter()
    elif settings.tracing_exporter == "otlp":
        kwargs: dict[str, Any] = {"service_name": settings.tracing_service_name}
        if settings.tracing_otlp_endpoint is not None:
            kwargs["endpoint"] = settings.tracing_otlp_endpoint
        exporter = OTLPExporter(**kwargs)
    else:
        exporter = StdoutExporter()

    logger.debug("Observability: tracing enabled (exporter=%s)", settings.tracing_exporter)
    return TracingMiddleware(exporter=exporter)
