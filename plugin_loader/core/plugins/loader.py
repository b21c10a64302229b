from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from plugin_loader.core.errors import (
    EntityInitError,
    ExtensionModuleError,
    LegacyConversionError,
    SchemaNotFound,
    SchemaValidationError,
)
from plugin_loader.core.schema.entity import EntityCatalog, EntityError, EntitySchema
from plugin_loader.core.schema.legacy import convert_legacy_schema
from plugin_loader.core.schema.metaschema import MetaSchema, MetaSubSchema
from plugin_loader.core.schema.models import SchemaDefinition
from plugin_loader.core.settings import LoaderSettings

from .graph import order_entity_schemas, schema_name
from .sources import PluginModuleSource, PluginServerSchemaSource, SchemaSource

log = logging.getLogger("plugin_loader.loader")

EntityLoaderFn = Callable[[str, Any], Any]


def _is_legacy(schema: Any) -> bool:
    return isinstance(schema, Mapping) and not schema.get("name")


def _as_definition(schema: Any) -> SchemaDefinition:
    if isinstance(schema, SchemaDefinition):
        return schema
    return SchemaDefinition.from_raw(schema)


class PluginLoader:
    """
    Loads plugin configuration subschemas and plugin entity schemas.

    Collaborators are injected; the loader itself keeps no state between calls.
    """

    def __init__(
        self,
        *,
        module_source: PluginModuleSource,
        catalog: EntityCatalog,
        remote_source: Optional[SchemaSource] = None,
        meta_schema=MetaSchema,
        meta_subschema=MetaSubSchema,
        func_policy: str = "drop",
    ):
        self.module_source = module_source
        self.remote_source = remote_source
        self.catalog = catalog
        self.meta_schema = meta_schema
        self.meta_subschema = meta_subschema
        self.func_policy = func_policy

    @classmethod
    def from_settings(
        cls,
        settings: Optional[LoaderSettings] = None,
        *,
        catalog: Optional[EntityCatalog] = None,
    ) -> "PluginLoader":
        settings = settings or LoaderSettings.from_env()
        remote = None
        if settings.pluginserver_cmds:
            remote = PluginServerSchemaSource(
                settings.pluginserver_cmds,
                timeout=settings.pluginserver_timeout,
            )
        return cls(
            module_source=PluginModuleSource(settings.plugins_path),
            catalog=catalog if catalog is not None else EntityCatalog.with_core_entities(),
            remote_source=remote,
            func_policy=settings.legacy_func,
        )

    def load_subschema(self, parent_schema: EntitySchema, plugin: str) -> SchemaDefinition:
        schema = self.module_source.load_schema(plugin)
        if schema is None and self.remote_source is not None:
            schema = self.remote_source.load_schema(plugin)
        if schema is None:
            raise SchemaNotFound(plugin)

        is_legacy = _is_legacy(schema)
        if is_legacy:
            try:
                schema = convert_legacy_schema(plugin, schema, func_policy=self.func_policy)
            except LegacyConversionError as err:
                err.plugin = plugin
                raise
            log.debug("converted legacy schema of plugin %s", plugin)

        ok, violation = self.meta_subschema.validate(schema)
        if not ok:
            msg = str(violation)
            if is_legacy:
                msg = f"failed converting legacy schema for {plugin}: {msg}"
            raise SchemaValidationError(msg, violation)

        schema_def = _as_definition(schema)
        try:
            self.catalog.new_subschema(parent_schema, plugin, schema_def)
        except EntityError as e:
            raise EntityInitError(f"error initializing schema for plugin: {e}") from e

        return schema_def

    def load_entity_schema(self, plugin: str, schema_def: Any) -> EntitySchema:
        name = schema_name(schema_def, "<unnamed>")

        ok, violation = self.meta_schema.validate(schema_def)
        if not ok:
            raise SchemaValidationError(
                f"schema of custom plugin entity '{plugin}.{name}' is invalid: {violation}",
                violation,
            )

        try:
            return self.catalog.new(_as_definition(schema_def))
        except EntityError as e:
            raise EntityInitError(
                f"schema of custom plugin entity '{plugin}.{name}' is invalid: {e}"
            ) from e

    def load_entities(
        self,
        plugin: str,
        loader_fn: Optional[EntityLoaderFn] = None,
    ) -> Dict[str, Any]:
        daos_schemas = self.module_source.load_daos(plugin)
        if daos_schemas is None:
            return {}

        if isinstance(daos_schemas, Mapping):
            # old syntax: a hash keyed by entity name, order it by foreign keys
            entries = order_entity_schemas(daos_schemas)
        elif isinstance(daos_schemas, (list, tuple)):
            entries = [(schema_name(d, str(i)), d) for i, d in enumerate(daos_schemas)]
        else:
            raise ExtensionModuleError(
                f"daos of plugin '{plugin}' must be a list or a table of entity schemas"
            )

        loader_fn = loader_fn or self.load_entity_schema

        res: Dict[str, Any] = {}
        for name, schema_def in entries:
            res[name] = loader_fn(plugin, schema_def)

        log.debug("loaded %s entities for plugin %s: %s", len(res), plugin, list(res))
        return res


def load_subschema(parent_schema: EntitySchema, plugin: str) -> SchemaDefinition:
    return PluginLoader.from_settings().load_subschema(parent_schema, plugin)


def load_entity_schema(plugin: str, schema_def: Any) -> EntitySchema:
    return PluginLoader.from_settings().load_entity_schema(plugin, schema_def)


def load_entities(plugin: str, loader_fn: Optional[EntityLoaderFn] = None) -> Dict[str, Any]:
    return PluginLoader.from_settings().load_entities(plugin, loader_fn)
