"""OpenAPI 3.0 output writer for flask-rpcrest.

Writes the current documentation model as a single openapi.json file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger("flask_rpcrest")


class OpenAPIWriter:
    """Generates openapi.json from an app's documentation model."""

    filename = "openapi.json"

    def write(self, app: Flask, output_dir: str, dry_run: bool = False) -> dict[str, Any]:
        from flask_rpcrest.web.views import openapi_document

        with app.app_context():
            spec = openapi_document()

        if not dry_run:
            output_path = Path(output_dir).resolve()
            output_path.mkdir(parents=True, exist_ok=True)
            file_path = output_path / self.filename
            file_path.write_text(
                json.dumps(spec, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            logger.debug("Written: %s", file_path)

        return spec
