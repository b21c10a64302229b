"""
Best-effort translation of old-style plugin schemas into modern subschemas.

Legacy schemas have no ``name`` and describe their options as a loose map
``{"fields": {"<option>": {"type": "...", ...}}}``.  The result always wraps
the translated options in a single ``config`` record.

Lossy on purpose: ``func`` hooks (arbitrary business rules) have no modern
equivalent and are dropped, or rejected when ``func_policy="error"``.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ValidationError

from plugin_loader.core.errors import (
    LegacyConversionError,
    UnknownLegacyFieldAttribute,
    UnknownLegacyFieldType,
    UntranslatableLegacyFunc,
)

from . import typedefs
from .models import (
    ArrayField,
    BooleanField,
    MapField,
    NamedField,
    NumberField,
    PassthroughField,
    RecordField,
    SchemaDefinition,
    StringField,
)
from .url import validate_url

log = logging.getLogger("plugin_loader.legacy")

FuncPolicy = Literal["drop", "error"]


class LegacyFieldAttribute(str, Enum):
    TYPE = "type"
    SCHEMA = "schema"
    IMMUTABLE = "immutable"
    ENUM = "enum"
    DEFAULT = "default"
    REQUIRED = "required"
    UNIQUE = "unique"
    FUNC = "func"
    NEW_TYPE = "new_type"


class LegacyFieldType(str, Enum):
    URL = "url"
    TABLE = "table"
    ARRAY = "array"
    TIMESTAMP = "timestamp"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


_COPIED = (LegacyFieldAttribute.DEFAULT, LegacyFieldAttribute.REQUIRED, LegacyFieldAttribute.UNIQUE)


def _attributes(fdata: Mapping[str, Any]) -> Dict[LegacyFieldAttribute, Any]:
    out: Dict[LegacyFieldAttribute, Any] = {}
    for key, value in fdata.items():
        try:
            out[LegacyFieldAttribute(key)] = value
        except ValueError:
            raise UnknownLegacyFieldAttribute(key) from None
    return out


def _legacy_type(value: Any) -> Optional[LegacyFieldType]:
    if value is None:
        return None
    try:
        return LegacyFieldType(value)
    except ValueError:
        raise UnknownLegacyFieldType(value) from None


def _field_default(field: Any) -> Any:
    if isinstance(field, PassthroughField):
        return field.definition.get("default")
    return field.default


def _string_map() -> Dict[str, Any]:
    return {"keys": StringField(), "values": StringField()}


def _convert_table(
    nested: Optional[Mapping[str, Any]],
    common: Dict[str, Any],
    func_policy: FuncPolicy,
):
    if nested is not None and not isinstance(nested, Mapping):
        raise LegacyConversionError("'schema' must be a table")
    if not nested:
        # no field list to build a record from
        common.setdefault("required", True)
        return MapField(**_string_map(), **common)

    rfields = _convert_fields(nested.get("fields") or {}, func_policy)

    if nested.get("flexible"):
        return MapField(
            keys=StringField(),
            values=RecordField(required=True, fields=rfields),
            **common,
        )

    common.setdefault("required", True)
    if "default" not in common:
        rdefault = {
            f.name: _field_default(f.field)
            for f in rfields
            if _field_default(f.field) is not None
        }
        if rdefault:
            common["default"] = rdefault
    return RecordField(fields=rfields, **common)


def convert_legacy_field(
    fname: str,
    fdata: Mapping[str, Any],
    *,
    func_policy: FuncPolicy = "drop",
):
    """Translate one legacy field descriptor into a modern field definition."""
    if not isinstance(fdata, Mapping):
        raise LegacyConversionError(f"field descriptor must be a table, got {type(fdata).__name__}")

    attrs = _attributes(fdata)

    if LegacyFieldAttribute.NEW_TYPE in attrs:
        new_type = attrs[LegacyFieldAttribute.NEW_TYPE]
        if isinstance(new_type, BaseModel):
            return new_type.model_copy(deep=True)
        if not isinstance(new_type, Mapping):
            raise LegacyConversionError("'new_type' must be a field definition table")
        return PassthroughField(definition=dict(new_type))

    ltype = _legacy_type(attrs.get(LegacyFieldAttribute.TYPE))

    if LegacyFieldAttribute.IMMUTABLE in attrs:
        log.debug("ignoring 'immutable' property of legacy field %s", fname)

    if LegacyFieldAttribute.FUNC in attrs:
        if func_policy == "error":
            raise UntranslatableLegacyFunc(fname)
        log.warning("dropping legacy 'func' validator of field %s; it is not enforced", fname)

    common: Dict[str, Any] = {a.value: attrs[a] for a in _COPIED if a in attrs}
    enum = attrs.get(LegacyFieldAttribute.ENUM)
    if enum is not None and ltype is not LegacyFieldType.ARRAY:
        common["one_of"] = enum

    if ltype is LegacyFieldType.URL:
        return StringField(custom_validator=validate_url, **common)

    if ltype is LegacyFieldType.TABLE:
        return _convert_table(attrs.get(LegacyFieldAttribute.SCHEMA), common, func_policy)

    if ltype is LegacyFieldType.ARRAY:
        return ArrayField(elements=StringField(one_of=enum), **common)

    if ltype is LegacyFieldType.TIMESTAMP:
        return typedefs.timestamp().model_copy(update=common)

    if ltype is LegacyFieldType.STRING:
        return StringField(len_min=0, **common)

    if ltype is LegacyFieldType.NUMBER:
        return NumberField(**common)

    if ltype is LegacyFieldType.BOOLEAN:
        return BooleanField(**common)

    # untyped legacy fields were plain strings
    return StringField(**common)


def _convert_fields(old_fields: Mapping[str, Any], func_policy: FuncPolicy) -> List[NamedField]:
    if not isinstance(old_fields, Mapping):
        raise LegacyConversionError("legacy 'fields' must be a table of field descriptors")

    out: List[NamedField] = []
    for fname in sorted(old_fields, key=str):
        try:
            field = convert_legacy_field(fname, old_fields[fname], func_policy=func_policy)
        except LegacyConversionError as err:
            err.prepend_field(str(fname))
            raise
        except ValidationError as err:
            conv_err = LegacyConversionError(str(err))
            conv_err.prepend_field(str(fname))
            raise conv_err from err
        out.append(NamedField(name=str(fname), field=field))
    return out


def convert_legacy_schema(
    name: str,
    old_schema: Mapping[str, Any],
    *,
    func_policy: FuncPolicy = "drop",
) -> SchemaDefinition:
    """
    Read a plugin schema in the old format and produce a modern subschema.

    Raises ``LegacyConversionError`` (or one of its subclasses) when a field
    uses an unknown type or attribute.
    """
    try:
        config_fields = _convert_fields(old_schema.get("fields") or {}, func_policy)
    except LegacyConversionError as err:
        err.prepend_field("config")
        raise

    config = RecordField(required=True, fields=config_fields)
    fields = [NamedField(name="config", field=config)]

    if old_schema.get("no_route"):
        fields.append(NamedField(name="route", field=typedefs.no_route()))
    if old_schema.get("no_service"):
        fields.append(NamedField(name="service", field=typedefs.no_service()))
    if old_schema.get("no_consumer"):
        fields.append(NamedField(name="consumer", field=typedefs.no_consumer()))

    try:
        return SchemaDefinition(
            name=name,
            fields=fields,
            entity_checks=old_schema.get("entity_checks"),
        )
    except ValidationError as err:
        raise LegacyConversionError(f"invalid entity_checks: {err}") from err
