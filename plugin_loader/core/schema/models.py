from __future__ import annotations

from typing import Annotated, Any, Callable, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SerializationInfo, model_serializer, model_validator


CustomValidator = Callable[[Any], bool]


class FieldBase(BaseModel):
    """Attributes shared by every modern field type."""

    model_config = ConfigDict(extra="forbid")

    required: Optional[bool] = None
    unique: Optional[bool] = None
    default: Any = None
    one_of: Optional[List[Any]] = None
    description: Optional[str] = None

    # callables never serialise; they only live on the in-memory definition
    custom_validator: Optional[CustomValidator] = Field(default=None, exclude=True)


class StringField(FieldBase):
    type: Literal["string"] = "string"
    len_min: Optional[int] = None
    len_max: Optional[int] = None
    match: Optional[str] = None
    uuid: Optional[bool] = None
    auto: Optional[bool] = None


class NumberField(FieldBase):
    type: Literal["number"] = "number"
    integer: Optional[bool] = None
    between: Optional[List[float]] = None
    gt: Optional[float] = None
    timestamp: Optional[bool] = None
    auto: Optional[bool] = None


class BooleanField(FieldBase):
    type: Literal["boolean"] = "boolean"


class ArrayField(FieldBase):
    type: Literal["array"] = "array"
    elements: FieldDefinition
    len_min: Optional[int] = None
    len_max: Optional[int] = None


class RecordField(FieldBase):
    type: Literal["record"] = "record"
    fields: List[NamedField]


class MapField(FieldBase):
    type: Literal["map"] = "map"
    keys: FieldDefinition
    values: FieldDefinition


class ForeignField(FieldBase):
    type: Literal["foreign"] = "foreign"
    reference: str
    on_delete: Optional[Literal["restrict", "cascade", "null"]] = None
    # marker fields: a plugin scoped this way must never be attached to the reference
    eq_null: Optional[bool] = None


class PassthroughField(FieldBase):
    """An already modern field handed over untouched by a legacy schema."""

    type: Literal["passthrough"] = "passthrough"
    definition: Dict[str, Any]

    @model_serializer(mode="plain")
    def _emit_definition(self) -> Dict[str, Any]:
        return dict(self.definition)


FieldDefinition = Annotated[
    Union[
        StringField,
        NumberField,
        BooleanField,
        ArrayField,
        RecordField,
        MapField,
        ForeignField,
        PassthroughField,
    ],
    Field(discriminator="type"),
]


class NamedField(BaseModel):
    """One entry of a field list; rendered as ``{name: {...}}`` in raw form."""

    name: str
    field: FieldDefinition

    @model_validator(mode="before")
    @classmethod
    def _from_single_key(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and len(data) == 1:
            (name, definition), = data.items()
            return {"name": name, "field": definition}
        return data

    @model_serializer(mode="plain")
    def _as_single_key(self, info: SerializationInfo) -> Dict[str, Any]:
        # rendered straight from the field model; nested NamedFields recurse the same way
        return {
            self.name: self.field.model_dump(
                mode=info.mode,
                by_alias=bool(info.by_alias),
                exclude_none=info.exclude_none,
                exclude_unset=info.exclude_unset,
                exclude_defaults=info.exclude_defaults,
            )
        }


class SchemaDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    fields: List[NamedField]
    entity_checks: Optional[List[Dict[str, Any]]] = None

    # entity attributes; unused by plugin subschemas
    primary_key: Optional[List[str]] = None
    endpoint_key: Optional[str] = None
    cache_key: Optional[List[str]] = None
    table_name: Optional[str] = None
    admin_api_name: Optional[str] = None
    generate_admin_api: Optional[bool] = None
    db_export: Optional[bool] = None
    ttl: Optional[bool] = None
    subschema_key: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "SchemaDefinition":
        return cls.model_validate(dict(raw) if isinstance(raw, Mapping) else raw)

    def to_raw(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> Optional[FieldDefinition]:
        for f in self.fields:
            if f.name == name:
                return f.field
        return None

    def foreign_references(self) -> List[str]:
        return [f.field.reference for f in self.fields if isinstance(f.field, ForeignField)]


for _model in (ArrayField, RecordField, MapField, NamedField, SchemaDefinition):
    _model.model_rebuild()
