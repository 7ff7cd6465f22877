"""OpenAPI document and Swagger UI page for the docs Blueprint."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify

from flask_rpcrest.auth import ApiKeyCheck
from flask_rpcrest.registry import get_documentation, get_settings
from flask_rpcrest.web._openapi import documentation_to_openapi

_EXPLORER_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>%(title)s - API Explorer</title>
<link rel="stylesheet" href="https://unpkg.com/swagger-ui-dist@5/swagger-ui.css">
<style>
  body { margin: 0; background: #fafafa; }
</style>
</head>
<body>
<div id="swagger-ui"></div>
<script src="https://unpkg.com/swagger-ui-dist@5/swagger-ui-bundle.js"></script>
<script>
window.onload = function() {
  window.ui = SwaggerUIBundle({
    url: %(docs_url)r,
    dom_id: '#swagger-ui',
    deepLinking: true,
    docExpansion: 'none',
    tagsSorter: 'alpha',
    operationsSorter: 'alpha'
  });
};
</script>
</body>
</html>
"""


def openapi_document() -> dict:
    """OpenAPI document for the current app's documentation model."""
    settings = get_settings()
    security = None
    check = current_app.extensions["rpcrest"].get("credential_check")
    if isinstance(check, ApiKeyCheck):
        security = {"name": check.name, "in": check.location}
    return documentation_to_openapi(
        get_documentation().model,
        title=settings.api_title,
        version=settings.api_version,
        description=settings.api_description,
        security=security,
    )


def register_view_routes(bp: Blueprint, *, docs_url: str, explorer_url: str) -> None:
    @bp.route(docs_url)
    def api_docs():
        return jsonify(openapi_document())

    @bp.route(explorer_url)
    def api_explorer():
        settings = get_settings()
        html = _EXPLORER_HTML % {"title": settings.api_title, "docs_url": settings.docs_url}
        return Response(html, content_type="text/html")
