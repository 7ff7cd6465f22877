"""Shared test fixtures for flask-rpcrest."""

from __future__ import annotations

import pytest
from flask import Flask

from _test_target_module import FakeBackend


@pytest.fixture()
def app(tmp_path):
    """Minimal Flask app with RPCREST_EXAMPLES_DIR pointed to tmp_path."""
    a = Flask(__name__)
    a.config["TESTING"] = True
    a.config["RPCREST_EXAMPLES_DIR"] = str(tmp_path / "examples")
    return a


@pytest.fixture()
def app_ctx(app):
    """Push an application context."""
    with app.app_context() as ctx:
        yield ctx


@pytest.fixture()
def backend():
    """FakeBackend serving the line catalog."""
    return FakeBackend()


@pytest.fixture()
def initialized_app(app, backend):
    """Flask app with RpcRest initialized over the fake backend."""
    from flask_rpcrest import RpcRest

    RpcRest(app, backend=backend)
    return app


@pytest.fixture()
def client(initialized_app):
    return initialized_app.test_client()
