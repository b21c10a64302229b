"""
Structural validators for modern schema definitions.

``MetaSchema`` checks standalone entity schemas, ``MetaSubSchema`` checks
plugin configuration subschemas.  Both return ``(ok, violation)`` and never
raise for a malformed definition.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .models import (
    ArrayField,
    FieldDefinition,
    MapField,
    NamedField,
    PassthroughField,
    RecordField,
    SchemaDefinition,
)


class SchemaViolation(BaseModel):
    """Field path -> message for one schema definition."""

    name: Optional[str] = None
    errors: Dict[str, str] = Field(default_factory=dict)

    def add(self, path: str, message: str) -> None:
        self.errors.setdefault(path, message)

    def __str__(self) -> str:
        parts = [f"{path}: {msg}" for path, msg in sorted(self.errors.items())]
        return "schema violation (" + "; ".join(parts) + ")"


_FIELD_ADAPTER: TypeAdapter = TypeAdapter(FieldDefinition)


def _loc(loc: Tuple[Any, ...]) -> str:
    return ".".join(str(p) for p in loc) or "@schema"


def _check_field(path: str, field: Any, violation: SchemaViolation) -> None:
    if isinstance(field, PassthroughField):
        # handed over raw by a legacy new_type; it must parse as a modern field
        try:
            parsed = _FIELD_ADAPTER.validate_python(field.definition)
        except ValidationError as e:
            for err in e.errors():
                violation.add(_loc((path,) + tuple(err["loc"])), err["msg"])
            return
        _check_field(path, parsed, violation)
        return

    if field.one_of is not None:
        if not field.one_of:
            violation.add(f"{path}.one_of", "must not be empty")
        elif field.default is not None and not isinstance(field, (RecordField, MapField)):
            if field.default not in field.one_of:
                violation.add(f"{path}.default", "default must be one of the allowed values")

    if isinstance(field, ArrayField):
        _check_field(f"{path}.elements", field.elements, violation)
    elif isinstance(field, MapField):
        _check_field(f"{path}.keys", field.keys, violation)
        _check_field(f"{path}.values", field.values, violation)
    elif isinstance(field, RecordField):
        _check_fields(path, field.fields, violation)


def _check_fields(path: str, fields: List[NamedField], violation: SchemaViolation) -> None:
    seen = set()
    for nf in fields:
        fpath = f"{path}.{nf.name}" if path else nf.name
        if nf.name in seen:
            violation.add(fpath, "duplicate field name")
            continue
        seen.add(nf.name)
        _check_field(fpath, nf.field, violation)


class _BaseMetaSchema:
    def _parse(
        self, schema_def: Union[SchemaDefinition, Mapping[str, Any]]
    ) -> Tuple[Optional[SchemaDefinition], SchemaViolation]:
        if isinstance(schema_def, SchemaDefinition):
            return schema_def, SchemaViolation(name=schema_def.name)

        name = schema_def.get("name") if isinstance(schema_def, Mapping) else None
        violation = SchemaViolation(name=name if isinstance(name, str) else None)
        try:
            return SchemaDefinition.from_raw(schema_def), violation
        except (ValidationError, TypeError, ValueError) as e:
            if isinstance(e, ValidationError):
                for err in e.errors():
                    violation.add(_loc(err["loc"]), err["msg"])
            else:
                violation.add("@schema", str(e))
            return None, violation

    def _check(self, schema: SchemaDefinition, violation: SchemaViolation) -> None:
        if not schema.fields:
            violation.add("fields", "at least one field is required")
        _check_fields("", schema.fields, violation)

    def validate(
        self, schema_def: Union[SchemaDefinition, Mapping[str, Any]]
    ) -> Tuple[bool, Optional[SchemaViolation]]:
        schema, violation = self._parse(schema_def)
        if schema is not None:
            self._check(schema, violation)
        if violation.errors:
            return False, violation
        return True, None


class MetaSchemaValidator(_BaseMetaSchema):
    def _check(self, schema: SchemaDefinition, violation: SchemaViolation) -> None:
        super()._check(schema, violation)
        names = set(schema.field_names())

        if not schema.primary_key:
            violation.add("primary_key", "an entity schema must declare a primary key")
        for key in schema.primary_key or []:
            if key not in names:
                violation.add("primary_key", f"primary key '{key}' is not a field")
        if schema.endpoint_key is not None and schema.endpoint_key not in names:
            violation.add("endpoint_key", f"endpoint key '{schema.endpoint_key}' is not a field")
        for key in schema.cache_key or []:
            if key not in names:
                violation.add("cache_key", f"cache key '{key}' is not a field")


class MetaSubSchemaValidator(_BaseMetaSchema):
    def _check(self, schema: SchemaDefinition, violation: SchemaViolation) -> None:
        super()._check(schema, violation)
        config = schema.get_field("config")
        if config is None:
            violation.add("config", "plugin subschemas must define a 'config' field")
        elif not isinstance(config, RecordField):
            violation.add("config", "'config' must be a record")


MetaSchema = MetaSchemaValidator()
MetaSubSchema = MetaSubSchemaValidator()
