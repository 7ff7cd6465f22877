"""Tests for flask_rpcrest.web -- namespace dispatch, admin routes, docs views."""

from __future__ import annotations

from pathlib import Path

import pytest
from _test_target_module import FakeBackend

from flask_rpcrest import RpcRest
from flask_rpcrest.backends import BackendConnectionError, BackendFault
from flask_rpcrest.examples import Example


def _last_call(backend):
    return backend.calls[-1]


class RecordingExampleStore:
    """Example lookup that records saves instead of writing files."""

    def __init__(self):
        self.saved = []

    def lookup(self, resource, http_method, *, resource_tag=None, operation=None):
        return [Example(summary="recorded")]

    def save(self, operation, payload, *, default=False):
        self.saved.append((operation, payload, default))
        return Path("/recorded") / operation


# ===========================================================================
# Dispatch through the route table
# ===========================================================================


class TestDispatch:
    def test_list(self, client, backend):
        resp = client.get("/api/rpc/lines")
        assert resp.status_code == 200
        assert _last_call(backend) == (
            "listLines",
            {
                "searchCriteria": {"name": "%", "description": "%"},
                "returnedTags": {"name": "", "description": ""},
            },
        )

    def test_list_filtered_by_path(self, client, backend):
        resp = client.get("/api/rpc/lines/name/10%25")
        assert resp.status_code == 200
        assert _last_call(backend)[1]["searchCriteria"] == {"name": "10%", "description": "%"}

    def test_list_filtered_by_query(self, client, backend):
        client.get("/api/rpc/lines?description=Lobby%25&limit=5")
        assert _last_call(backend)[1]["searchCriteria"] == {"name": "%", "description": "Lobby%"}

    def test_companion_route_serves_list(self, client, backend):
        resp = client.get("/api/rpc/line")
        assert resp.status_code == 200
        assert _last_call(backend)[0] == "listLines"

    def test_get_by_parameter(self, client, backend):
        resp = client.get("/api/rpc/line/name/1001")
        assert resp.status_code == 200
        assert resp.get_json() == {"operation": "getLine", "arguments": {"name": "1001"}}

    def test_literal_segments_case_insensitive(self, client, backend):
        assert client.get("/api/rpc/LINES").status_code == 200

    def test_add_wraps_body(self, client, backend):
        resp = client.post("/api/rpc/line", json={"name": "1001"})
        assert resp.status_code == 200
        assert _last_call(backend) == ("addLine", {"line": {"name": "1001"}})

    def test_add_wraps_array_body(self, client, backend):
        resp = client.post("/api/rpc/line", json=[{"name": "a"}])
        assert resp.status_code == 200
        assert _last_call(backend) == ("addLine", {"line": [{"name": "a"}]})

    def test_zero_result_becomes_message(self, app):
        RpcRest(app, backend=FakeBackend(results={"listLines": 0}))
        resp = app.test_client().get("/api/rpc/lines")
        assert resp.status_code == 200
        assert resp.get_json() == {"message": "No content returned for operation listLines", "statusCode": 200}

    def test_update_flattens_and_merges_parameter(self, client, backend):
        client.patch("/api/rpc/line/uuid/123", json={"line": {"description": "foo"}})
        assert _last_call(backend) == ("updateLine", {"description": "foo", "uuid": "123"})

    def test_delete_by_body(self, client, backend):
        resp = client.delete("/api/rpc/line", json={"uuid": "u1"})
        assert resp.status_code == 200
        assert _last_call(backend) == ("removeLine", {"uuid": "u1"})

    def test_delete_without_identifier(self, client, backend):
        resp = client.delete("/api/rpc/line")
        assert resp.status_code == 400
        data = resp.get_json()
        assert data["error"] == "BAD_REQUEST"
        assert data["path"] == "/api/rpc/line"
        assert backend.calls == []

    def test_template_substitution(self, client, backend):
        client.post("/api/rpc/line", json={"pattern": "%%_ext_%%", "_data": {"ext": "1001"}})
        assert _last_call(backend) == ("addLine", {"line": {"pattern": "1001"}})

    def test_empty_result_message(self, client, backend):
        backend.results["removeLine"] = None
        resp = client.delete("/api/rpc/line/name/1001")
        assert resp.status_code == 200
        assert resp.get_json() == {"message": "No content returned for operation removeLine", "statusCode": 200}


# ===========================================================================
# Error responses
# ===========================================================================


class TestErrorResponses:
    def test_unknown_route(self, client):
        resp = client.get("/api/rpc/phones")
        assert resp.status_code == 404
        assert resp.get_json() == {
            "error": "NOT_FOUND",
            "message": "No operation route for GET /api/rpc/phones",
            "statusCode": 404,
            "path": "/api/rpc/phones",
        }

    def test_wrong_verb(self, client):
        assert client.post("/api/rpc/lines").status_code == 404

    def test_namespace_root(self, client):
        resp = client.get("/api/rpc/")
        assert resp.status_code == 404
        assert resp.is_json

    def test_malformed_json(self, client, backend):
        resp = client.post("/api/rpc/line", data="{bad", content_type="application/json")
        assert resp.status_code == 400
        assert resp.get_json()["message"].startswith("Invalid JSON in request body")
        assert backend.calls == []

    def test_operation_left_catalog(self, client, backend):
        backend.operations.remove("addLine")
        resp = client.post("/api/rpc/line", json={"name": "1001"})
        assert resp.status_code == 404
        assert "not found in backend catalog" in resp.get_json()["message"]

    def test_backend_unreachable(self, client, backend):
        backend.errors["addLine"] = BackendConnectionError("connection refused")
        resp = client.post("/api/rpc/line", json={"name": "1001"})
        assert resp.status_code == 503
        assert resp.get_json()["error"] == "SERVICE_UNAVAILABLE"

    def test_remote_fault(self, client, backend):
        backend.errors["addLine"] = BackendFault("Client", "Could not insert new row - duplicate value")
        resp = client.post("/api/rpc/line", json={"name": "1001"})
        data = resp.get_json()
        assert resp.status_code == 400
        assert data["error"] == "AXL_ERROR"
        assert data["message"] == "Could not insert new row - duplicate value"
        assert data["operation"] == "addLine"
        assert data["params"] == {"line": {"name": "1001"}}

    @pytest.mark.parametrize(
        "exc, status",
        [
            (ValueError("Line 1001 already exists"), 409),
            (LookupError("Line not found"), 404),
            (ValueError("missing required field pattern"), 400),
            (RuntimeError("kaboom"), 500),
        ],
    )
    def test_message_heuristic(self, client, backend, exc, status):
        backend.errors["addLine"] = exc
        resp = client.post("/api/rpc/line", json={"name": "1001"})
        assert resp.status_code == status
        assert resp.get_json()["statusCode"] == status

    def test_unexpected_error_is_json(self, client, backend):
        backend.catalog_error = RuntimeError("catalog exploded")
        resp = client.get("/api/rpc/debug/operations")
        assert resp.status_code == 500
        assert resp.get_json()["error"] == "INTERNAL_ERROR"
        assert resp.get_json()["message"] == "catalog exploded"


# ===========================================================================
# Administrative routes
# ===========================================================================


class TestMethods:
    def test_lists_endpoints(self, client):
        data = client.get("/api/rpc/methods").get_json()
        assert data["count"] == 5
        by_op = {e["operation"]: e for e in data["endpoints"]}
        assert by_op["getLine"]["endpoint"] == "/api/rpc/line/:parameterType/:parameterValue"
        assert by_op["listLines"]["usage"] == "GET /api/rpc/lines"
        assert by_op["addLine"]["httpMethod"] == "POST"

    def test_filter(self, client):
        data = client.get("/api/rpc/methods?filter=GET").get_json()
        assert [e["operation"] for e in data["endpoints"]] == ["getLine"]

    def test_catalog_failure(self, client, backend):
        backend.catalog_error = ConnectionError("down")
        resp = client.get("/api/rpc/methods")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["count"] == 0
        assert data["endpoints"] == []
        assert "backend may be unavailable" in data["error"]

    def test_parameters(self, client):
        data = client.get("/api/rpc/methods/addLine/parameters").get_json()
        assert data == {"method": "addLine", "parameters": {"line": {"name": "", "description": ""}}}

    def test_parameters_unknown_operation(self, client):
        resp = client.get("/api/rpc/methods/addPhone/parameters")
        assert resp.status_code == 404
        assert resp.get_json()["operation"] == "addPhone"


class TestDebug:
    def test_operations_filter_case_insensitive(self, client):
        data = client.get("/api/rpc/debug/operations?filter=LIST").get_json()
        assert data == {"count": 1, "operations": ["listLines"]}

    def test_routes_in_registration_order(self, client):
        data = client.get("/api/rpc/debug/routes").get_json()
        assert data["routeCount"] == 9
        first = data["routes"][0]
        assert (first["method"], first["path"], first["operation"]) == ("GET", "/api/rpc/lines", "listLines")
        companion = next(r for r in data["routes"] if r["declaredBy"] != r["operation"])
        assert companion["declaredBy"] == "addLine"


class TestRegenerate:
    def test_picks_up_new_operations(self, client, backend):
        backend.operations.append("resetLine")
        assert client.post("/api/rpc/resetline", json={"name": "1001"}).status_code == 404

        data = client.post("/api/rpc/docs/regenerate").get_json()
        assert data["operationCount"] == 6
        assert data["routeCount"] == 10
        assert data["documentedRoutes"] == 10

        resp = client.post("/api/rpc/resetline", json={"name": "1001"})
        assert resp.status_code == 200
        assert _last_call(backend) == ("resetLine", {"name": "1001"})

    def test_docs_follow_regeneration(self, client, backend):
        backend.operations.append("resetLine")
        client.post("/api/rpc/docs/regenerate")
        spec = client.get("/api-docs.json").get_json()
        assert "/api/rpc/resetline" in spec["paths"]


class TestSaveExample:
    def test_save(self, client, tmp_path):
        resp = client.post("/api/rpc/examples/addLine", json={"line": {"name": "1001"}})
        data = resp.get_json()
        assert data["status"] == "success"
        assert data["operation"] == "addLine"
        assert (tmp_path / "examples" / "resources" / "line" / "post" / "addline.json").is_file()

    def test_save_default(self, client, tmp_path):
        client.post("/api/rpc/examples/updateLine?default=true", json={"uuid": "u1"})
        assert (tmp_path / "examples" / "resources" / "line" / "patch" / "default.json").is_file()

    def test_get_operation_rejected(self, client, tmp_path):
        resp = client.post("/api/rpc/examples/listLines", json={"name": "1001"})
        assert resp.status_code == 400
        assert "served over GET" in resp.get_json()["message"]
        assert not (tmp_path / "examples" / "resources").exists()

    def test_injected_store_receives_save(self, app, tmp_path):
        store = RecordingExampleStore()
        RpcRest(app, backend=FakeBackend(), examples=store)
        resp = app.test_client().post("/api/rpc/examples/addLine?default=1", json={"name": "1001"})
        assert resp.status_code == 200
        assert store.saved == [("addLine", {"name": "1001"}, True)]
        assert not (tmp_path / "examples").exists()


# ===========================================================================
# Credential checks
# ===========================================================================


class TestApiKey:
    @pytest.fixture()
    def secured(self, app):
        app.config["RPCREST_API_KEY"] = "secret"
        RpcRest(app, backend=FakeBackend())
        return app.test_client()

    def test_missing_key(self, secured):
        resp = secured.get("/api/rpc/lines")
        assert resp.status_code == 401
        data = resp.get_json()
        assert data["error"] == "AUTHENTICATION_FAILED"
        assert data["message"] == "API key is required. Please provide it in the header 'x-api-key'"

    def test_wrong_key(self, secured):
        resp = secured.get("/api/rpc/lines", headers={"x-api-key": "nope"})
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid API key provided. Please check your credentials."

    def test_valid_key(self, secured):
        assert secured.get("/api/rpc/lines", headers={"x-api-key": "secret"}).status_code == 200

    def test_admin_routes_guarded(self, secured):
        assert secured.get("/api/rpc/methods").status_code == 401

    def test_docs_not_guarded_and_declare_scheme(self, secured):
        resp = secured.get("/api-docs.json")
        assert resp.status_code == 200
        assert resp.get_json()["security"] == [{"ApiKeyAuth": []}]

    def test_query_location(self, app):
        app.config.update(RPCREST_API_KEY="secret", RPCREST_API_KEY_LOCATION="query", RPCREST_API_KEY_NAME="key")
        RpcRest(app, backend=FakeBackend())
        client = app.test_client()
        assert client.get("/api/rpc/lines", headers={"key": "secret"}).status_code == 401
        assert client.get("/api/rpc/lines?key=secret").status_code == 200

    def test_query_key_not_forwarded_to_backend(self, app):
        app.config.update(RPCREST_API_KEY="secret", RPCREST_API_KEY_LOCATION="query", RPCREST_API_KEY_NAME="key")
        backend = FakeBackend(
            ["customThing", "syncAll"],
            shapes={},
            errors={"syncAll": BackendFault("Client", "sync failed")},
        )
        RpcRest(app, backend=backend)
        client = app.test_client()

        resp = client.post("/api/rpc/customthing?key=secret&limit=5", json={"a": 1})
        assert resp.status_code == 200
        assert backend.calls[-1] == ("customThing", {"limit": "5", "a": 1})

        resp = client.post("/api/rpc/syncall?key=secret")
        assert resp.status_code == 400
        assert "secret" not in resp.get_data(as_text=True)
        assert backend.calls[-1] == ("syncAll", {})


def test_custom_credential_check(app):
    app.config["RPCREST_CREDENTIAL_CHECK"] = "_test_target_module.DenyAllCheck"
    RpcRest(app, backend=FakeBackend())
    resp = app.test_client().get("/api/rpc/lines")
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Access denied by DenyAllCheck"


# ===========================================================================
# Documentation views
# ===========================================================================


class TestDocsViews:
    def test_openapi_document(self, client):
        spec = client.get("/api-docs.json").get_json()
        assert spec["openapi"] == "3.0.0"
        assert spec["info"]["title"] == "RPC REST API"
        assert "/api/rpc/line/{parameterType}/{parameterValue}" in spec["paths"]
        assert "security" not in spec

    def test_explorer_page(self, client):
        resp = client.get("/api-explorer")
        assert resp.status_code == 200
        assert resp.content_type.startswith("text/html")
        html = resp.get_data(as_text=True)
        assert "swagger-ui" in html
        assert "'/api-docs.json'" in html

    def test_custom_urls(self, app):
        app.config.update(RPCREST_DOCS_URL="/spec.json", RPCREST_EXPLORER_URL="/explore", RPCREST_API_TITLE="Lines")
        RpcRest(app, backend=FakeBackend())
        client = app.test_client()
        assert client.get("/spec.json").get_json()["info"]["title"] == "Lines"
        assert "'/spec.json'" in client.get("/explore").get_data(as_text=True)
