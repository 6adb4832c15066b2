import json
from pathlib import Path

import pytest

from inkwell.core.config import InkwellConfig
from inkwell.core.types import AuthContext, Role
from inkwell.mcp.dispatcher import Dispatcher
from inkwell.mcp.registry import Env
from inkwell.store.sqlite_store import SQLiteStore
from inkwell.tools import build_registry


@pytest.fixture
def store(tmp_path: Path):
    s = SQLiteStore(tmp_path / "inkwell.db")
    s.migrate()
    yield s
    s.close()


@pytest.fixture
def config(tmp_path: Path):
    return InkwellConfig(watermark="Test Mark", templates_dir=str(tmp_path / "voice"))


@pytest.fixture
def env(store, config):
    return Env(store=store, config=config)


@pytest.fixture
def owner():
    return AuthContext(role=Role.OWNER)


@pytest.fixture
def public():
    return AuthContext(role=Role.PUBLIC)


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def dispatcher(registry, env, owner):
    return Dispatcher(registry, env, owner)


@pytest.fixture
def call_tool(dispatcher):
    """Call a tool through the dispatcher and decode its JSON text payload."""

    def _call(name, arguments=None, msg_id=1):
        response = dispatcher.handle({
            "jsonrpc": "2.0",
            "id": msg_id,
            "method": "tools/call",
            "params": {"name": name, "arguments": arguments or {}},
        })
        if "error" in response:
            return response
        return json.loads(response["result"]["content"][0]["text"])

    return _call


def make_article(store, **fields):
    row = {"title": "Untitled", "status": "published", "type": "edition"}
    row.update(fields)
    return store.insert("articles", row)


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=""):
        self._payload = payload
        self.status_code = status_code
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeSession:
    """Stands in for requests.Session: answers GETs from a url -> handler map."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []
        self.headers = {}

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "headers": dict(headers or {})})
        handler = self.routes.get(url)
        if handler is None:
            return FakeResponse(status_code=404, text="not found")
        if callable(handler):
            return handler(dict(params or {}))
        return handler
