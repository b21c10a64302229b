from .graph import order_entity_schemas, sort_entity_schemas_topologically
from .loader import PluginLoader, load_entities, load_entity_schema, load_subschema
from .sources import PluginModuleSource, PluginServerSchemaSource

__all__ = [
    "PluginLoader",
    "PluginModuleSource",
    "PluginServerSchemaSource",
    "order_entity_schemas",
    "sort_entity_schemas_topologically",
    "load_subschema",
    "load_entity_schema",
    "load_entities",
]
