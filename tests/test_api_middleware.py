import logging

from fastapi.testclient import TestClient

from plugin_loader.api.main import app
from plugin_loader.api.middleware.error_shaping import error_status
from plugin_loader.api.middleware.request_id import RequestIdLogFilter
from plugin_loader.core.errors import EntityInitError, ExtensionModuleError, SchemaNotFound


def test_request_id_header_generated(client):
    r = client.get("/health/live")
    assert r.status_code == 200
    assert len(r.headers["X-Request-Id"]) > 10


def test_request_id_passthrough(client):
    rid = "test-rid-123"
    r = client.get("/health/live", headers={"X-Request-Id": rid})
    assert r.headers.get("X-Request-Id") == rid


def test_unhandled_error_is_shaped_without_traceback(monkeypatch):
    # an invalid policy fails while building the loader, outside the typed errors
    monkeypatch.setenv("PLUGIN_LOADER_LEGACY_FUNC", "translate")
    c = TestClient(app, raise_server_exceptions=False)

    r = c.get("/plugins/rate-limiting/schema")

    assert r.status_code == 500
    assert r.json()["detail"] == "Internal Server Error"
    assert "Traceback" not in r.text
    assert "File \"" not in r.text


def test_unknown_route_does_not_leak_traceback(client):
    r = client.get("/does/not/exist")
    assert r.status_code == 404
    assert "Traceback" not in r.text


def test_loader_error_payload_carries_request_id_and_field(client):
    r = client.post(
        "/schemas/convert",
        json={"name": "p", "schema": {"fields": {"outer": {"type": "table", "schema": {"fields": {"x": {"type": "widget"}}}}}}},
        headers={"X-Request-Id": "rid-convert-1"},
    )

    assert r.status_code == 422
    body = r.json()
    assert body["request_id"] == "rid-convert-1"
    assert body["detail"]["field"] == "config.outer.x"


def test_cyclic_entities_are_reported_with_the_cycle(client, monkeypatch, plugins_dir, write_plugin):
    write_plugin(
        "acme",
        "daos.py",
        """
        DAOS = {
            "x": {"name": "x", "primary_key": ["id"],
                  "fields": [{"id": {"type": "string"}}, {"y": {"type": "foreign", "reference": "y"}}]},
            "y": {"name": "y", "primary_key": ["id"],
                  "fields": [{"id": {"type": "string"}}, {"x": {"type": "foreign", "reference": "x"}}]},
        }
        """,
    )
    monkeypatch.setenv("PLUGIN_LOADER_PLUGINS_PATH", str(plugins_dir))

    r = client.get("/plugins/acme/entities")

    assert r.status_code == 422
    detail = r.json()["detail"]
    assert detail["code"] == "CyclicEntityDependency"
    assert detail["cycle"] == ["y", "x", "y"]


def test_error_status_mapping():
    assert error_status(SchemaNotFound("acme")) == 404
    assert error_status(ExtensionModuleError("broken")) == 422
    assert error_status(EntityInitError("clash")) == 422


def test_request_is_logged_with_its_id(client, caplog):
    with caplog.at_level(logging.INFO, logger="plugin_loader.request"):
        client.get("/health/live", headers={"X-Request-Id": "rid-log-7"})

    assert "rid-log-7" in caplog.text


def test_log_filter_outside_a_request():
    record = logging.LogRecord("plugin_loader.legacy", logging.WARNING, __file__, 1, "msg", None, None)

    assert RequestIdLogFilter().filter(record) is True
    assert record.request_id == "-"


class _Collect(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def test_loader_warnings_carry_the_request_id(client, monkeypatch, plugins_dir, write_plugin):
    write_plugin("acme", "schema.py", 'SCHEMA = {"fields": {"foo": {"type": "string", "func": len}}}')
    monkeypatch.setenv("PLUGIN_LOADER_PLUGINS_PATH", str(plugins_dir))

    handler = _Collect()
    handler.addFilter(RequestIdLogFilter())
    legacy_log = logging.getLogger("plugin_loader.legacy")
    legacy_log.addHandler(handler)
    try:
        r = client.get("/plugins/acme/schema", headers={"X-Request-Id": "rid-func-3"})
    finally:
        legacy_log.removeHandler(handler)

    assert r.status_code == 200
    assert [rec.request_id for rec in handler.records] == ["rid-func-3"]
