from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

# settings.py lives at: <repo_root>/plugin_loader/core/settings.py
BUNDLED_PLUGINS_DIR = Path(__file__).resolve().parents[1] / "plugins"

_FUNC_POLICIES = ("drop", "error")


@dataclass
class LoaderSettings:
    plugins_path: List[Path] = field(default_factory=lambda: [BUNDLED_PLUGINS_DIR])
    legacy_func: str = "drop"   # "drop" | "error"
    pluginserver_cmds: List[str] = field(default_factory=list)
    pluginserver_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "LoaderSettings":
        raw_path = (os.getenv("PLUGIN_LOADER_PLUGINS_PATH") or "").strip()
        paths = [Path(p) for p in raw_path.split(os.pathsep) if p.strip()] if raw_path else [BUNDLED_PLUGINS_DIR]

        legacy_func = (os.getenv("PLUGIN_LOADER_LEGACY_FUNC") or "drop").strip().lower()
        if legacy_func not in _FUNC_POLICIES:
            raise ValueError(
                f"PLUGIN_LOADER_LEGACY_FUNC must be one of {_FUNC_POLICIES}, got {legacy_func!r}"
            )

        raw_cmds = (os.getenv("PLUGIN_LOADER_PLUGINSERVER_CMDS") or "").strip()
        cmds = [c.strip() for c in raw_cmds.split(";") if c.strip()]

        timeout = float((os.getenv("PLUGIN_LOADER_PLUGINSERVER_TIMEOUT") or "10").strip())

        return cls(
            plugins_path=paths,
            legacy_func=legacy_func,
            pluginserver_cmds=cmds,
            pluginserver_timeout=timeout,
        )
