"""Tests for the 'flask rpcrest' CLI group."""

from __future__ import annotations

import json

# ---------------------------------------------------------------------------
# routes
# ---------------------------------------------------------------------------


class TestRoutesCommand:
    def test_text_output(self, initialized_app):
        result = initialized_app.test_cli_runner().invoke(args=["rpcrest", "routes"])
        assert result.exit_code == 0, result.output
        assert "[flask-rpcrest] 9 routes bound." in result.output
        assert "/api/rpc/line/:parameterType/:parameterValue -> getLine" in result.output

    def test_json_output(self, initialized_app):
        result = initialized_app.test_cli_runner().invoke(args=["rpcrest", "routes", "--json"])
        assert result.exit_code == 0, result.output
        routes = json.loads(result.output)
        assert len(routes) == 9
        assert routes[0]["operation"] == "listLines"


# ---------------------------------------------------------------------------
# operations
# ---------------------------------------------------------------------------


class TestOperationsCommand:
    def test_lists_catalog(self, initialized_app):
        result = initialized_app.test_cli_runner().invoke(args=["rpcrest", "operations"])
        assert result.exit_code == 0, result.output
        assert "[flask-rpcrest] 5 operations." in result.output
        assert "removeLine" in result.output

    def test_filter(self, initialized_app):
        result = initialized_app.test_cli_runner().invoke(args=["rpcrest", "operations", "-f", "remove"])
        assert result.exit_code == 0, result.output
        assert "[flask-rpcrest] 1 operations." in result.output

    def test_catalog_failure(self, initialized_app, backend):
        backend.catalog_error = ConnectionError("down")
        result = initialized_app.test_cli_runner().invoke(args=["rpcrest", "operations"])
        assert result.exit_code != 0
        assert "Could not retrieve the operation catalog: down" in result.output


# ---------------------------------------------------------------------------
# regenerate
# ---------------------------------------------------------------------------


class TestRegenerateCommand:
    def test_rebuilds(self, initialized_app, backend):
        backend.operations.append("doLdapSync")
        result = initialized_app.test_cli_runner().invoke(args=["rpcrest", "regenerate"])
        assert result.exit_code == 0, result.output
        assert "Registered 10 routes for 6 operations (10 documented)." in result.output


# ---------------------------------------------------------------------------
# export-docs
# ---------------------------------------------------------------------------


class TestExportDocsCommand:
    def test_openapi(self, initialized_app, tmp_path):
        out = tmp_path / "out"
        result = initialized_app.test_cli_runner().invoke(args=["rpcrest", "export-docs", "--dir", str(out)])
        assert result.exit_code == 0, result.output
        assert "Written to" in result.output
        spec = json.loads((out / "openapi.json").read_text(encoding="utf-8"))
        assert spec["openapi"] == "3.0.0"

    def test_json_routes(self, initialized_app, tmp_path):
        out = tmp_path / "out"
        result = initialized_app.test_cli_runner().invoke(
            args=["rpcrest", "export-docs", "-d", str(out), "--format", "json"]
        )
        assert result.exit_code == 0, result.output
        assert len(json.loads((out / "rpcrest-routes.json").read_text(encoding="utf-8"))) == 9

    def test_dry_run(self, initialized_app, tmp_path):
        out = tmp_path / "out"
        result = initialized_app.test_cli_runner().invoke(
            args=["rpcrest", "export-docs", "--dir", str(out), "--dry-run"]
        )
        assert result.exit_code == 0, result.output
        assert "Dry run" in result.output
        assert not out.exists()

    def test_dir_required(self, initialized_app):
        result = initialized_app.test_cli_runner().invoke(args=["rpcrest", "export-docs"])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# save-example
# ---------------------------------------------------------------------------


class TestSaveExampleCommand:
    def test_json_file(self, initialized_app, tmp_path):
        source = tmp_path / "body.json"
        source.write_text('{"line": {"name": "1001"}}', encoding="utf-8")
        result = initialized_app.test_cli_runner().invoke(args=["rpcrest", "save-example", "addLine", str(source)])
        assert result.exit_code == 0, result.output
        saved = tmp_path / "examples" / "resources" / "line" / "post" / "addline.json"
        assert json.loads(saved.read_text(encoding="utf-8"))["value"] == {"line": {"name": "1001"}}

    def test_yaml_file_as_default(self, initialized_app, tmp_path):
        source = tmp_path / "body.yaml"
        source.write_text("uuid: u1\ndescription: Lobby\n", encoding="utf-8")
        result = initialized_app.test_cli_runner().invoke(
            args=["rpcrest", "save-example", "updateLine", str(source), "--default"]
        )
        assert result.exit_code == 0, result.output
        saved = tmp_path / "examples" / "resources" / "line" / "patch" / "default.json"
        assert json.loads(saved.read_text(encoding="utf-8"))["value"] == {"uuid": "u1", "description": "Lobby"}

    def test_unparseable_file(self, initialized_app, tmp_path):
        source = tmp_path / "body.json"
        source.write_text("{nope", encoding="utf-8")
        result = initialized_app.test_cli_runner().invoke(args=["rpcrest", "save-example", "addLine", str(source)])
        assert result.exit_code != 0
        assert "Could not parse" in result.output

    def test_get_operation_rejected(self, initialized_app, tmp_path):
        source = tmp_path / "body.json"
        source.write_text('{"name": "1001"}', encoding="utf-8")
        result = initialized_app.test_cli_runner().invoke(args=["rpcrest", "save-example", "listLines", str(source)])
        assert result.exit_code != 0
        assert "served over GET" in result.output
