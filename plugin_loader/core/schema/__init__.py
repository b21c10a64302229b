from .models import (
    ArrayField,
    BooleanField,
    FieldDefinition,
    ForeignField,
    MapField,
    NamedField,
    NumberField,
    PassthroughField,
    RecordField,
    SchemaDefinition,
    StringField,
)
from .legacy import convert_legacy_schema
from .metaschema import MetaSchema, MetaSubSchema, SchemaViolation
from .entity import EntityCatalog, EntitySchema

__all__ = [
    "ArrayField",
    "BooleanField",
    "FieldDefinition",
    "ForeignField",
    "MapField",
    "NamedField",
    "NumberField",
    "PassthroughField",
    "RecordField",
    "SchemaDefinition",
    "StringField",
    "convert_legacy_schema",
    "MetaSchema",
    "MetaSubSchema",
    "SchemaViolation",
    "EntityCatalog",
    "EntitySchema",
]
