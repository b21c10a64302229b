import logging

import pytest

from plugin_loader.core.errors import (
    LegacyConversionError,
    UnknownLegacyFieldAttribute,
    UnknownLegacyFieldType,
    UntranslatableLegacyFunc,
)
from plugin_loader.core.schema.legacy import convert_legacy_schema
from plugin_loader.core.schema.models import (
    ArrayField,
    BooleanField,
    ForeignField,
    MapField,
    NumberField,
    PassthroughField,
    RecordField,
    StringField,
)


def _config_fields(schema):
    config = schema.get_field("config")
    assert isinstance(config, RecordField)
    return {nf.name: nf.field for nf in config.fields}


def test_wraps_fields_in_required_config_record():
    schema = convert_legacy_schema("p", {"fields": {"foo": {"type": "string"}}})

    assert schema.name == "p"
    assert schema.field_names() == ["config"]
    config = schema.get_field("config")
    assert isinstance(config, RecordField)
    assert config.required is True

    foo = _config_fields(schema)["foo"]
    assert isinstance(foo, StringField)
    assert foo.len_min == 0


def test_url_field_becomes_string_with_url_validator():
    foo = _config_fields(convert_legacy_schema("p", {"fields": {"foo": {"type": "url"}}}))["foo"]

    assert isinstance(foo, StringField)
    assert foo.custom_validator is not None
    assert foo.custom_validator("http://example.com")
    assert foo.custom_validator("http://example.com/path")
    assert not foo.custom_validator("not-a-url")
    assert not foo.custom_validator(42)


def test_flexible_table_becomes_map_of_records():
    legacy = {
        "fields": {
            "headers": {
                "type": "table",
                "schema": {"flexible": True, "fields": {"value": {"type": "string"}}},
            }
        }
    }
    headers = _config_fields(convert_legacy_schema("p", legacy))["headers"]

    assert isinstance(headers, MapField)
    assert isinstance(headers.keys, StringField)
    assert isinstance(headers.values, RecordField)
    assert headers.values.required is True
    assert [nf.name for nf in headers.values.fields] == ["value"]


def test_table_becomes_required_record():
    legacy = {"fields": {"redis": {"type": "table", "schema": {"fields": {"host": {"type": "string"}}}}}}
    redis = _config_fields(convert_legacy_schema("p", legacy))["redis"]

    assert isinstance(redis, RecordField)
    assert redis.required is True
    assert [nf.name for nf in redis.fields] == ["host"]


def test_table_keeps_explicit_required_false():
    legacy = {
        "fields": {
            "redis": {
                "type": "table",
                "required": False,
                "schema": {"fields": {"host": {"type": "string"}}},
            }
        }
    }
    redis = _config_fields(convert_legacy_schema("p", legacy))["redis"]

    assert isinstance(redis, RecordField)
    assert redis.required is False


def test_record_default_is_synthesised_from_nested_defaults():
    legacy = {
        "fields": {
            "redis": {
                "type": "table",
                "schema": {
                    "fields": {
                        "host": {"type": "string", "default": "localhost"},
                        "port": {"type": "number", "default": 6379},
                        "ssl": {"type": "boolean", "default": False},
                        "password": {"type": "string"},
                    }
                },
            }
        }
    }
    redis = _config_fields(convert_legacy_schema("p", legacy))["redis"]

    assert redis.default == {"host": "localhost", "port": 6379, "ssl": False}


def test_table_without_schema_falls_back_to_string_map():
    options = _config_fields(convert_legacy_schema("p", {"fields": {"opts": {"type": "table"}}}))["opts"]

    assert isinstance(options, MapField)
    assert isinstance(options.keys, StringField)
    assert isinstance(options.values, StringField)


def test_array_enum_goes_to_elements():
    legacy = {"fields": {"methods": {"type": "array", "enum": ["GET", "POST"]}}}
    methods = _config_fields(convert_legacy_schema("p", legacy))["methods"]

    assert isinstance(methods, ArrayField)
    assert methods.one_of is None
    assert isinstance(methods.elements, StringField)
    assert methods.elements.one_of == ["GET", "POST"]


def test_enum_on_scalar_sets_one_of():
    legacy = {"fields": {"policy": {"type": "string", "enum": ["local", "redis"], "default": "local"}}}
    policy = _config_fields(convert_legacy_schema("p", legacy))["policy"]

    assert policy.one_of == ["local", "redis"]
    assert policy.default == "local"


def test_timestamp_uses_canonical_definition():
    ts = _config_fields(convert_legacy_schema("p", {"fields": {"at": {"type": "timestamp"}}}))["at"]

    assert isinstance(ts, NumberField)
    assert ts.timestamp is True
    assert ts.auto is True


def test_number_boolean_and_untyped_fields():
    legacy = {
        "fields": {
            "count": {"type": "number", "default": 5, "required": True},
            "enabled": {"type": "boolean", "unique": True},
            "anything": {"default": "x"},
        }
    }
    fields = _config_fields(convert_legacy_schema("p", legacy))

    assert isinstance(fields["count"], NumberField)
    assert fields["count"].default == 5
    assert fields["count"].required is True
    assert isinstance(fields["enabled"], BooleanField)
    assert fields["enabled"].unique is True
    assert isinstance(fields["anything"], StringField)
    assert fields["anything"].default == "x"


def test_unknown_type_fails():
    with pytest.raises(UnknownLegacyFieldType) as exc:
        convert_legacy_schema("p", {"fields": {"foo": {"type": "widget"}}})

    assert exc.value.value == "widget"
    assert "config.foo" in str(exc.value)


def test_unknown_attribute_fails():
    with pytest.raises(UnknownLegacyFieldAttribute) as exc:
        convert_legacy_schema("p", {"fields": {"foo": {"type": "string", "colour": "red"}}})

    assert exc.value.key == "colour"


def test_nested_error_reports_field_path():
    legacy = {
        "fields": {
            "outer": {
                "type": "table",
                "schema": {"fields": {"inner": {"type": "widget"}}},
            }
        }
    }
    with pytest.raises(UnknownLegacyFieldType) as exc:
        convert_legacy_schema("p", legacy)

    assert exc.value.field_path == ["config", "outer", "inner"]


def test_immutable_is_ignored():
    legacy = {"fields": {"foo": {"type": "number", "immutable": True, "default": 1}}}
    foo = _config_fields(convert_legacy_schema("p", legacy))["foo"]

    assert isinstance(foo, NumberField)
    assert foo.default == 1


def test_func_is_dropped_with_warning(caplog):
    legacy = {"fields": {"foo": {"type": "string", "func": lambda v: True}}}

    with caplog.at_level(logging.WARNING, logger="plugin_loader.legacy"):
        foo = _config_fields(convert_legacy_schema("p", legacy))["foo"]

    assert foo.custom_validator is None
    assert "func" in caplog.text


def test_func_policy_error_rejects_func():
    legacy = {"fields": {"foo": {"type": "string", "func": lambda v: True}}}

    with pytest.raises(UntranslatableLegacyFunc):
        convert_legacy_schema("p", legacy, func_policy="error")


def test_new_type_is_copied_as_is():
    legacy = {
        "fields": {
            "mode": {
                "type": "widget",
                "new_type": {"type": "string", "one_of": ["a", "b"], "default": "a"},
            }
        }
    }
    schema = convert_legacy_schema("p", legacy)
    mode = _config_fields(schema)["mode"]

    assert isinstance(mode, PassthroughField)
    raw_config = schema.to_raw()["fields"][0]["config"]
    assert raw_config["fields"] == [{"mode": {"type": "string", "one_of": ["a", "b"], "default": "a"}}]


def test_marker_fields_are_appended():
    schema = convert_legacy_schema("p", {"no_route": True, "no_consumer": True, "fields": {}})

    assert schema.field_names() == ["config", "route", "consumer"]
    route = schema.get_field("route")
    assert isinstance(route, ForeignField)
    assert route.reference == "routes"
    assert route.eq_null is True


def test_entity_checks_are_copied_through():
    checks = [{"at_least_one_of": ["config.second", "config.minute"]}]
    schema = convert_legacy_schema("p", {"fields": {"second": {"type": "number"}}, "entity_checks": checks})

    assert schema.entity_checks == checks


def test_non_table_field_descriptor_fails():
    with pytest.raises(LegacyConversionError):
        convert_legacy_schema("p", {"fields": {"foo": "string"}})


def test_fields_are_emitted_in_name_order():
    legacy = {"fields": {"b": {"type": "string"}, "a": {"type": "number"}, "c": {"type": "boolean"}}}
    schema = convert_legacy_schema("p", legacy)

    raw = schema.to_raw()
    assert [next(iter(f)) for f in raw["fields"][0]["config"]["fields"]] == ["a", "b", "c"]
