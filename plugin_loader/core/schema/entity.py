"""
In-memory entity construction engine.

The catalog holds every entity the caller has constructed so far; foreign
fields must point at an entity already in the catalog (or at the entity
itself), which is why plugin entity batches are loaded in dependency order.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from . import typedefs
from .models import (
    ForeignField,
    NamedField,
    RecordField,
    SchemaDefinition,
    StringField,
)


class EntityError(Exception):
    pass


@dataclass
class EntitySchema:
    name: str
    definition: SchemaDefinition
    references: Dict[str, "EntitySchema"] = field(default_factory=dict)
    subschemas: Dict[str, SchemaDefinition] = field(default_factory=dict)

    @property
    def primary_key(self) -> List[str]:
        return list(self.definition.primary_key or [])

    @property
    def subschema_key(self) -> Optional[str]:
        return self.definition.subschema_key

    def get_subschema(self, name: str) -> Optional[SchemaDefinition]:
        return self.subschemas.get(name)


class EntityCatalog:
    def __init__(self, entities: Iterable[EntitySchema] = ()):
        self._entities: Dict[str, EntitySchema] = {}
        for e in entities:
            self._entities[e.name] = e

    def __contains__(self, name: str) -> bool:
        return name in self._entities

    def get(self, name: str) -> Optional[EntitySchema]:
        return self._entities.get(name)

    def names(self) -> List[str]:
        return sorted(self._entities.keys())

    def new(self, schema_def: SchemaDefinition) -> EntitySchema:
        if schema_def.name in self._entities:
            raise EntityError(f"entity '{schema_def.name}' is already defined")

        entity = EntitySchema(name=schema_def.name, definition=schema_def)
        for nf in schema_def.fields:
            if not isinstance(nf.field, ForeignField):
                continue
            ref = nf.field.reference
            if ref == schema_def.name:
                entity.references[nf.name] = entity
                continue
            target = self._entities.get(ref)
            if target is None:
                raise EntityError(
                    f"field '{nf.name}' references unknown entity '{ref}'"
                )
            entity.references[nf.name] = target

        self._entities[entity.name] = entity
        return entity

    def new_subschema(self, parent: EntitySchema, name: str, schema_def: SchemaDefinition) -> None:
        if parent.subschema_key is None:
            raise EntityError(f"entity '{parent.name}' does not accept subschemas")
        if name in parent.subschemas:
            raise EntityError(f"subschema '{name}' is already registered on '{parent.name}'")
        parent.subschemas[name] = schema_def

    @classmethod
    def with_core_entities(cls) -> "EntityCatalog":
        """A catalog preloaded with services, routes, consumers and plugins."""
        catalog = cls()
        for schema_def in core_entity_definitions():
            catalog.new(schema_def)
        return catalog


def _id_fields() -> List[NamedField]:
    return [
        NamedField(name="id", field=typedefs.uuid()),
        NamedField(name="created_at", field=typedefs.timestamp()),
    ]


def core_entity_definitions() -> List[SchemaDefinition]:
    return [
        SchemaDefinition(
            name="services",
            primary_key=["id"],
            endpoint_key="name",
            fields=_id_fields() + [
                NamedField(name="name", field=StringField(unique=True)),
                NamedField(name="host", field=StringField(required=True)),
            ],
        ),
        SchemaDefinition(
            name="routes",
            primary_key=["id"],
            endpoint_key="name",
            fields=_id_fields() + [
                NamedField(name="name", field=StringField(unique=True)),
                NamedField(name="service", field=ForeignField(reference="services")),
            ],
        ),
        SchemaDefinition(
            name="consumers",
            primary_key=["id"],
            endpoint_key="username",
            fields=_id_fields() + [
                NamedField(name="username", field=StringField(unique=True)),
            ],
        ),
        SchemaDefinition(
            name="plugins",
            primary_key=["id"],
            subschema_key="name",
            fields=_id_fields() + [
                NamedField(name="name", field=StringField(required=True)),
                NamedField(name="route", field=ForeignField(reference="routes")),
                NamedField(name="service", field=ForeignField(reference="services")),
                NamedField(name="consumer", field=ForeignField(reference="consumers")),
                # concrete shape comes from each plugin subschema
                NamedField(name="config", field=RecordField(fields=[])),
            ],
        ),
    ]
