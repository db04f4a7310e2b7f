"""mpconf core - properties document model and multi-source resolution engine."""

from .__version__ import __version__, __version_info__

from .nodes import UNTERMINATED, Document, Node, NodeKind, Property
from .parser import PropertiesParser, parse, parse_value
from .keys import qualified_name, split_profile, strip_continuations
from .graph import PropertyGraph
from .resolver import (
    AbsentReason,
    CancellationToken,
    CycleScope,
    PropertyResolver,
    Resolution,
    ResolveStatus,
)
from .project_info import KnownProperty, ProjectInfo
from .sources import (
    ConfigSource,
    ConfigSourceProvider,
    DirectoryConfigSourceProvider,
    InMemoryConfigSource,
    PropertiesConfigSource,
    PropertyInformation,
    StaticConfigSourceProvider,
    YamlConfigSource,
)
from .settings import MpconfSettings, SettingsLoader
from .project import ConfigProject
from .errors import (
    ConfigError,
    MpconfError,
    ResolutionCancelled,
    SourceLoadError,
)

__all__ = [
    # Version
    "__version__",
    "__version_info__",
    # Tree
    "UNTERMINATED",
    "Document",
    "Node",
    "NodeKind",
    "Property",
    # Parser
    "PropertiesParser",
    "parse",
    "parse_value",
    # Keys
    "qualified_name",
    "split_profile",
    "strip_continuations",
    # Graph & resolution
    "PropertyGraph",
    "AbsentReason",
    "CancellationToken",
    "CycleScope",
    "PropertyResolver",
    "Resolution",
    "ResolveStatus",
    # Project metadata
    "KnownProperty",
    "ProjectInfo",
    # Sources
    "ConfigSource",
    "ConfigSourceProvider",
    "DirectoryConfigSourceProvider",
    "InMemoryConfigSource",
    "PropertiesConfigSource",
    "PropertyInformation",
    "StaticConfigSourceProvider",
    "YamlConfigSource",
    # Settings
    "MpconfSettings",
    "SettingsLoader",
    # Aggregation
    "ConfigProject",
    # Errors
    "ConfigError",
    "MpconfError",
    "ResolutionCancelled",
    "SourceLoadError",
]
