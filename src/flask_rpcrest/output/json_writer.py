"""JSON output writer for flask-rpcrest.

Writes the bound route table as a single rpcrest-routes.json file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger("flask_rpcrest")


class JSONWriter:
    """Generates rpcrest-routes.json from an app's route table."""

    filename = "rpcrest-routes.json"

    def write(self, app: Flask, output_dir: str, dry_run: bool = False) -> list[dict[str, Any]]:
        from flask_rpcrest.registry import get_registrar, get_settings
        from flask_rpcrest.serializers import routes_to_dicts

        results = routes_to_dicts(get_registrar(app).table, get_settings(app).base_path)

        if not dry_run:
            output_path = Path(output_dir).resolve()
            output_path.mkdir(parents=True, exist_ok=True)
            file_path = output_path / self.filename
            file_path.write_text(
                json.dumps(results, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            logger.debug("Written: %s", file_path)

        return results
