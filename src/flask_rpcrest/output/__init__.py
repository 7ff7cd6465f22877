"""Output writer subpackage for flask-rpcrest.

Provides get_writer() factory for selecting the documentation export format.

OpenAPI writer (default) is available via output_format="openapi".
JSON route-table writer is available via output_format="json".
"""

from __future__ import annotations


def get_writer(output_format: str = "openapi"):
    """Return a writer instance for the given format.

    Args:
        output_format: "openapi" for an OpenAPI 3.0 document, "json" for the
            bound route table.

    Returns:
        An OpenAPIWriter or JSONWriter instance.

    Raises:
        ValueError: If format is unknown.
    """
    if output_format == "openapi":
        from flask_rpcrest.output.openapi_writer import OpenAPIWriter

        return OpenAPIWriter()
    elif output_format == "json":
        from flask_rpcrest.output.json_writer import JSONWriter

        return JSONWriter()
    else:
        raise ValueError(f"Unknown output format: {output_format!r}")
