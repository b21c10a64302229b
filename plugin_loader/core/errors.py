from __future__ import annotations

from typing import Any, List, Optional


class PluginLoadError(Exception):
    """Base class for every failure raised while loading plugin schemas."""


class LegacyConversionError(PluginLoadError):
    """
    Raised while translating a legacy schema.

    The failing field path and the plugin name are attached as the error
    travels up, so ``str(err)`` reads like
    ``failed converting legacy schema for acme: config.limits.unit: ...``.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.field_path: List[str] = []
        self.plugin: Optional[str] = None

    def prepend_field(self, name: str) -> None:
        self.field_path.insert(0, name)

    def __str__(self) -> str:
        msg = self.message
        if self.field_path:
            msg = f"{'.'.join(self.field_path)}: {msg}"
        if self.plugin:
            msg = f"failed converting legacy schema for {self.plugin}: {msg}"
        return msg


class UnknownLegacyFieldType(LegacyConversionError):
    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"unknown legacy field type: {value}")


class UnknownLegacyFieldAttribute(LegacyConversionError):
    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"unknown legacy field attribute: {key!r}")


class UntranslatableLegacyFunc(LegacyConversionError):
    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__("legacy 'func' validator cannot be translated")


class SchemaNotFound(PluginLoadError):
    def __init__(self, plugin: str):
        self.plugin = plugin
        super().__init__(f"no configuration schema found for plugin: {plugin}")


class SchemaValidationError(PluginLoadError):
    def __init__(self, message: str, violation: Any = None):
        self.violation = violation
        super().__init__(message)


class EntityInitError(PluginLoadError):
    pass


class CyclicEntityDependency(PluginLoadError):
    def __init__(self, cycle: List[str]):
        self.cycle = list(cycle)
        super().__init__("cyclic entity dependency: " + " -> ".join(self.cycle))


class ExtensionModuleError(PluginLoadError):
    pass
