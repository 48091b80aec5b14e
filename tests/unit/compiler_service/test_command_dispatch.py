import pytest

from common.config.settings import CompilerSettings
from common.errors import ConnectivityError
from compiler_service import dispatch, dispatch_raw, parse_envelope
from compiler_service.requests import CompileRequest, IntrospectRequest
from manifest.models import Manifest

MANIFEST_JSON = {
    "database": "shop",
    "defaultPrefix": "wp_",
    "installerClass": "DemoInstaller",
    "tables": [
        {
            "name": "orders",
            "columns": [{"name": "id", "type": "int", "primaryKey": True, "autoIncrement": True}],
        },
        {"name": "options"},
    ],
}


def test_parse_envelope_routes_on_kind():
    envelope = parse_envelope({"request": {"kind": "compile", "manifest": MANIFEST_JSON}})
    assert isinstance(envelope.request, CompileRequest)
    assert envelope.request.manifest.installer_class == "DemoInstaller"
    assert envelope.request_id

    envelope = parse_envelope(
        '{"request_id": "r1", "request": {"kind": "introspect", "connection": "server=db;database=shop"}}'
    )
    assert isinstance(envelope.request, IntrospectRequest)
    assert envelope.request_id == "r1"
    assert envelope.request.descriptor().host == "db"


@pytest.mark.asyncio
async def test_compile_request_returns_sources():
    response = await dispatch_raw(
        {"request_id": "r2", "request": {"kind": "compile", "manifest": MANIFEST_JSON}},
        settings=CompilerSettings(),
    )

    assert response.success is True
    assert response.request_id == "r2"
    payload = response.payload
    assert payload["className"] == "DemoInstaller"
    assert payload["slug"] == "demo-installer"
    assert "class DemoInstaller {" in payload["installerClassSource"]
    assert "{$this->prefix}options" not in payload["installerClassSource"]
    assert [f["type"] for f in payload["files"]] == ["InstallerStub", "MainPlugin", "InstallerClass"]
    assert payload["counts"]["tables"] == 2


@pytest.mark.asyncio
async def test_compile_request_with_custom_core_tables():
    response = await dispatch_raw(
        {"request": {"kind": "compile", "manifest": MANIFEST_JSON, "core_tables": []}},
        settings=CompilerSettings(),
    )
    assert "CREATE TABLE {$this->prefix}options (" in response.payload["installerClassSource"]


@pytest.mark.asyncio
async def test_unknown_kind_is_invalid_request():
    response = await dispatch_raw(
        {"request_id": "r3", "request": {"kind": "deploy"}}, settings=CompilerSettings()
    )

    assert response.success is False
    assert response.error_code == "INVALID_REQUEST"
    assert response.error.startswith("Invalid request:")
    assert response.request_id == "r3"


@pytest.mark.asyncio
async def test_validation_failure_is_reported():
    response = await dispatch_raw(
        {
            "request": {
                "kind": "validate_manifest",
                "manifest": {**MANIFEST_JSON, "tables": []},
                "selected_tables": ["orders"],
            }
        },
        settings=CompilerSettings(),
    )

    assert response.success is False
    assert response.error_code == "MANIFEST_VALIDATION_ERROR"
    assert "'orders'" in response.error


@pytest.mark.asyncio
async def test_validate_request_success():
    response = await dispatch_raw(
        {
            "request": {
                "kind": "validate_manifest",
                "manifest": MANIFEST_JSON,
                "installer_class_override": "Other",
            }
        },
        settings=CompilerSettings(),
    )

    assert response.success is True
    assert response.payload["valid"] is True
    assert response.payload["className"] == "Other"


@pytest.mark.asyncio
async def test_introspect_falls_back_to_settings(monkeypatch):
    captured = {}

    async def fake_introspect(descriptor, prefix, include_seed_data=False, installer_class=None, settings=None):
        captured.update(host=descriptor.host, prefix=prefix, installer_class=installer_class)
        return Manifest(database="shop", default_prefix=prefix, installer_class=installer_class)

    monkeypatch.setattr("compiler_service.dispatcher.introspect_schema", fake_introspect)
    settings = CompilerSettings(table_prefix="site_", installer_class="SiteInstaller")

    response = await dispatch_raw(
        {"request": {"kind": "introspect", "connection": "server=db;uid=u;database=shop"}},
        settings=settings,
    )

    assert response.success is True
    assert captured == {"host": "db", "prefix": "site_", "installer_class": "SiteInstaller"}
    assert response.payload["manifest"]["defaultPrefix"] == "site_"
    assert response.payload["counts"] == {"tables": 0, "views": 0, "procedures": 0, "triggers": 0}


@pytest.mark.asyncio
async def test_connectivity_error_is_sanitized(monkeypatch):
    async def failing_introspect(*_args, **_kwargs):
        raise ConnectivityError("Could not connect to mysql://u:pw123@db/shop")

    monkeypatch.setattr("compiler_service.dispatcher.introspect_schema", failing_introspect)

    response = await dispatch_raw(
        {"request": {"kind": "introspect", "connection": "mysql://u:pw123@db/shop"}},
        settings=CompilerSettings(),
    )

    assert response.success is False
    assert response.error_code == "DB_CONNECTION_ERROR"
    assert "pw123" not in response.error


@pytest.mark.asyncio
async def test_malformed_connection_string_is_invalid_request():
    response = await dispatch_raw(
        {"request": {"kind": "introspect", "connection": "server=db;pwd=hunter2;nonsense"}},
        settings=CompilerSettings(),
    )

    assert response.success is False
    assert response.error_code == "INVALID_REQUEST"
    assert "hunter2" not in response.error


@pytest.mark.asyncio
async def test_unexpected_error_is_hidden(monkeypatch):
    def broken_compile(*_args, **_kwargs):
        raise RuntimeError("secret internals")

    monkeypatch.setattr("compiler_service.dispatcher.compile_manifest", broken_compile)
    envelope = parse_envelope({"request": {"kind": "compile", "manifest": MANIFEST_JSON}})

    response = await dispatch(envelope, settings=CompilerSettings())

    assert response.success is False
    assert response.error_code == "INTERNAL_ERROR"
    assert response.error == "An internal error occurred."
