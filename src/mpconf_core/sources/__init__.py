"""Config source abstraction and implementations."""

from .base import CONFIG_ORDINAL_KEY, ConfigSource, PropertyInformation
from .memory import InMemoryConfigSource
from .properties_source import PropertiesConfigSource
from .providers import (
    APPLICATION_PROPERTIES_ORDINAL,
    MICROPROFILE_CONFIG_ORDINAL,
    ConfigSourceProvider,
    DirectoryConfigSourceProvider,
    StaticConfigSourceProvider,
)
from .yaml_source import APPLICATION_YAML_ORDINAL, YamlConfigSource, flatten_yaml

__all__ = [
    "CONFIG_ORDINAL_KEY",
    "APPLICATION_PROPERTIES_ORDINAL",
    "APPLICATION_YAML_ORDINAL",
    "MICROPROFILE_CONFIG_ORDINAL",
    "ConfigSource",
    "ConfigSourceProvider",
    "DirectoryConfigSourceProvider",
    "InMemoryConfigSource",
    "PropertiesConfigSource",
    "PropertyInformation",
    "StaticConfigSourceProvider",
    "YamlConfigSource",
    "flatten_yaml",
]
