"""
Canonical field definitions shared by converted and hand-written schemas.

Each accessor returns a fresh copy so callers may attach per-field attributes
(``required``, ``default``...) without leaking them into other schemas.
"""
from __future__ import annotations

from .models import ForeignField, NumberField, StringField


_TIMESTAMP = NumberField(integer=True, timestamp=True, auto=True)
_UUID = StringField(uuid=True, auto=True)
_NO_ROUTE = ForeignField(reference="routes", eq_null=True)
_NO_SERVICE = ForeignField(reference="services", eq_null=True)
_NO_CONSUMER = ForeignField(reference="consumers", eq_null=True)


def timestamp() -> NumberField:
    return _TIMESTAMP.model_copy(deep=True)


def uuid() -> StringField:
    return _UUID.model_copy(deep=True)


def no_route() -> ForeignField:
    return _NO_ROUTE.model_copy(deep=True)


def no_service() -> ForeignField:
    return _NO_SERVICE.model_copy(deep=True)


def no_consumer() -> ForeignField:
    return _NO_CONSUMER.model_copy(deep=True)
