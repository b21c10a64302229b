from __future__ import annotations

import hashlib
import importlib.util
import json
import logging
import re
import shlex
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

import yaml

from plugin_loader.core.errors import ExtensionModuleError

log = logging.getLogger("plugin_loader.sources")

_PLUGIN_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


class SchemaSource(Protocol):
    def load_schema(self, plugin: str) -> Optional[Any]:
        ...


class PluginModuleSource:
    """
    File-backed plugin modules.

    Looks up plugins in each root, first match wins:
      <root>/<plugin>/schema.py   (symbol SCHEMA)  or schema.yaml / schema.yml
      <root>/<plugin>/daos.py     (symbol DAOS)    or daos.yaml / daos.yml

    A missing module returns None; a module that exists but cannot be loaded
    raises ExtensionModuleError.
    """

    def __init__(self, roots: Sequence[Union[str, Path]]):
        self.roots = [Path(r) for r in roots]

    def load_schema(self, plugin: str) -> Optional[Any]:
        return self._load(plugin, "schema", symbol="SCHEMA")

    def load_daos(self, plugin: str) -> Optional[Any]:
        return self._load(plugin, "daos", symbol="DAOS")

    def list_plugins(self) -> List[str]:
        names = set()
        for root in self.roots:
            if not root.is_dir():
                continue
            for d in root.iterdir():
                if d.is_dir() and _PLUGIN_NAME.match(d.name) and self._find(d.name, "schema"):
                    names.add(d.name)
        return sorted(names)

    # --- internals ---

    def _find(self, plugin: str, stem: str) -> Optional[Path]:
        if not _PLUGIN_NAME.match(plugin):
            return None
        for root in self.roots:
            for suffix in (".py", ".yaml", ".yml"):
                p = root / plugin / f"{stem}{suffix}"
                if p.is_file():
                    return p
        return None

    def _load(self, plugin: str, stem: str, *, symbol: str) -> Optional[Any]:
        path = self._find(plugin, stem)
        if path is None:
            return None

        try:
            if path.suffix == ".py":
                return self._load_symbol(path, symbol=symbol)
            return yaml.safe_load(path.read_text(encoding="utf-8"))
        except ExtensionModuleError:
            raise
        except Exception as e:
            raise ExtensionModuleError(f"failed to load {stem} module of plugin '{plugin}': {e}") from e

    def _load_symbol(self, module_path: Path, symbol: str) -> Any:
        module_path = module_path.resolve()

        # module name must be deterministic across interpreter restarts
        path_key = str(module_path).replace("\\", "/").lower().encode("utf-8")
        path_hash = hashlib.sha1(path_key).hexdigest()[:16]
        stem = f"{module_path.parent.name}_{module_path.stem}".replace("-", "_")
        module_name = f"plugin_loader_ext_{stem}_{path_hash}"

        spec = importlib.util.spec_from_file_location(module_name, str(module_path))
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot create module spec for {module_path}")

        mod = importlib.util.module_from_spec(spec)

        # register before exec_module; dataclasses in plugin modules look themselves up
        sys.modules[module_name] = mod
        try:
            spec.loader.exec_module(mod)  # type: ignore[attr-defined]
        except Exception:
            sys.modules.pop(module_name, None)
            raise

        if not hasattr(mod, symbol):
            raise ExtensionModuleError(f"{module_path.name} must define {symbol}")
        return getattr(mod, symbol)


class PluginServerSchemaSource:
    """
    Schemas of out-of-process plugins.

    Each query command prints the plugin info dump of its server as JSON:
      [{"name": "...", "version": "...", "schema": {...}}, ...]
    A failing server is logged and skipped.
    """

    def __init__(self, query_cmds: Sequence[str], *, timeout: float = 10.0):
        self.query_cmds = list(query_cmds)
        self.timeout = timeout

    def load_schema(self, plugin: str) -> Optional[Any]:
        for cmd in self.query_cmds:
            for info in self._query(cmd):
                if info.get("name") == plugin and isinstance(info.get("schema"), dict):
                    return info["schema"]
        return None

    def _query(self, cmd: str) -> List[Dict[str, Any]]:
        try:
            proc = subprocess.run(
                shlex.split(cmd),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except (OSError, subprocess.SubprocessError) as e:
            log.warning("plugin server query failed cmd=%r: %s", cmd, e)
            return []

        try:
            data = json.loads(proc.stdout or "[]")
        except json.JSONDecodeError as e:
            log.warning("plugin server returned invalid JSON cmd=%r: %s", cmd, e)
            return []

        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            return []
        return [d for d in data if isinstance(d, dict)]
