import textwrap
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from plugin_loader.api.main import app
from plugin_loader.core.plugins.loader import PluginLoader
from plugin_loader.core.plugins.sources import PluginModuleSource
from plugin_loader.core.schema.entity import EntityCatalog


@pytest.fixture(autouse=True)
def _clean_loader_env(monkeypatch):
    # Tests must not pick up loader settings from the developer's shell
    for key in (
        "PLUGIN_LOADER_PLUGINS_PATH",
        "PLUGIN_LOADER_LEGACY_FUNC",
        "PLUGIN_LOADER_PLUGINSERVER_CMDS",
        "PLUGIN_LOADER_PLUGINSERVER_TIMEOUT",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def plugins_dir(tmp_path: Path) -> Path:
    d = tmp_path / "plugins"
    d.mkdir()
    return d


@pytest.fixture()
def write_plugin(plugins_dir: Path):
    """
    write_plugin("acme", "schema.py", "SCHEMA = {...}") -> plugin directory
    """
    def _write(plugin: str, filename: str, content: str) -> Path:
        p = plugins_dir / plugin
        p.mkdir(exist_ok=True)
        (p / filename).write_text(textwrap.dedent(content), encoding="utf-8")
        return p

    return _write


@pytest.fixture()
def catalog() -> EntityCatalog:
    return EntityCatalog.with_core_entities()


@pytest.fixture()
def loader(plugins_dir: Path, catalog: EntityCatalog) -> PluginLoader:
    return PluginLoader(module_source=PluginModuleSource([plugins_dir]), catalog=catalog)
