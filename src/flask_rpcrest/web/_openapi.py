"""OpenAPI 3.0 rendering of the documentation model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flask_rpcrest.docs import DocumentationModel

ERROR_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "error": {"type": "string", "example": "BAD_REQUEST"},
        "message": {"type": "string"},
        "statusCode": {"type": "integer", "example": 400},
        "path": {"type": "string"},
        "details": {},
        "operation": {"type": "string"},
        "params": {},
    },
    "required": ["error", "message", "statusCode"],
}


def documentation_to_openapi(
    model: DocumentationModel,
    *,
    title: str,
    version: str,
    description: str | None = None,
    security: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Render a DocumentationModel as an OpenAPI 3.0 document.

    Args:
        model: Current documentation model.
        title: API title for the info object.
        version: API version for the info object.
        description: Optional API description.
        security: Optional ``{"name": ..., "in": "header"|"query"}`` API key
            scheme; applied globally when given.

    Returns:
        OpenAPI 3.0.0 document as a nested dict.
    """
    paths = model.to_dict()
    tags = sorted({tag for verbs in paths.values() for entry in verbs.values() for tag in entry.get("tags", [])})

    info: dict[str, Any] = {"title": title, "version": version}
    if description:
        info["description"] = description

    spec: dict[str, Any] = {
        "openapi": "3.0.0",
        "info": info,
        "tags": [{"name": tag} for tag in tags],
        "paths": dict(sorted(paths.items())),
        "components": {"schemas": {"ErrorResponse": ERROR_RESPONSE_SCHEMA}},
    }

    if security is not None:
        spec["components"]["securitySchemes"] = {
            "ApiKeyAuth": {"type": "apiKey", "name": security["name"], "in": security["in"]}
        }
        spec["security"] = [{"ApiKeyAuth": []}]

    return spec
