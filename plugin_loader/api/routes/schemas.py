from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from plugin_loader.core.plugins.loader import PluginLoader
from plugin_loader.core.schema.legacy import convert_legacy_schema
from plugin_loader.core.schema.metaschema import MetaSubSchema
from plugin_loader.core.settings import LoaderSettings

# PluginLoadError subclasses raised below are shaped by api/middleware/error_shaping.py
router = APIRouter(tags=["Schemas"])


class ConvertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    legacy_schema: Dict[str, Any] = Field(alias="schema")


def _loader() -> PluginLoader:
    # fresh loader + catalog per request; nothing is shared between calls
    return PluginLoader.from_settings(LoaderSettings.from_env())


@router.post("/schemas/convert")
def convert_schema(req: ConvertRequest) -> Dict[str, Any]:
    settings = LoaderSettings.from_env()
    schema = convert_legacy_schema(req.name, req.legacy_schema, func_policy=settings.legacy_func)

    ok, violation = MetaSubSchema.validate(schema)
    return {
        "name": schema.name,
        "valid": ok,
        "violation": violation.model_dump() if violation else None,
        "schema": schema.to_raw(),
    }


@router.get("/plugins")
def list_plugins() -> Dict[str, Any]:
    names = _loader().module_source.list_plugins()
    return {"count": len(names), "plugins": names}


@router.get("/plugins/{plugin}/schema")
def get_plugin_schema(plugin: str) -> Dict[str, Any]:
    loader = _loader()
    schema = loader.load_subschema(loader.catalog.get("plugins"), plugin)
    return {"plugin": plugin, "schema": schema.to_raw()}


@router.get("/plugins/{plugin}/entities")
def get_plugin_entities(plugin: str) -> Dict[str, Any]:
    entities = _loader().load_entities(plugin)
    return {
        "plugin": plugin,
        "order": list(entities.keys()),
        "entities": {name: e.definition.to_raw() for name, e in entities.items()},
    }
