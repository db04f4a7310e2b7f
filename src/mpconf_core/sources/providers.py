"""Config source providers: discovery of sources for a project.

Providers are plain objects handed to :class:`~mpconf_core.project.ConfigProject`;
there is no global registry.

Files recognised under a resource directory (default ordinal in brackets):

- ``META-INF/microprofile-config.properties`` [100]
- ``META-INF/microprofile-config-<profile>.properties`` [100]
- ``application.properties`` [250]
- ``application-<profile>.properties`` [250]
- ``application.yaml`` / ``application.yml`` [255]
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from .base import ConfigSource
from .properties_source import PropertiesConfigSource
from .yaml_source import APPLICATION_YAML_ORDINAL, YamlConfigSource

logger = logging.getLogger(__name__)

MICROPROFILE_CONFIG_ORDINAL = 100
APPLICATION_PROPERTIES_ORDINAL = 250

MICROPROFILE_CONFIG_STEM = "microprofile-config"
APPLICATION_STEM = "application"


class ConfigSourceProvider(Protocol):
    """Config source provider protocol."""

    def get_config_sources(self) -> List[ConfigSource]:
        """Return the sources this provider knows about, in discovery order."""
        ...


class StaticConfigSourceProvider:
    """Provider over a fixed list of sources."""

    def __init__(self, sources: Sequence[ConfigSource]) -> None:
        self.sources = list(sources)

    def get_config_sources(self) -> List[ConfigSource]:
        return list(self.sources)


def _profile_from_stem(stem: str, base: str) -> Optional[str]:
    prefix = f"{base}-"
    if stem.startswith(prefix) and len(stem) > len(prefix):
        return stem[len(prefix) :]
    return None


class DirectoryConfigSourceProvider:
    """Discover config files under one resource directory."""

    def __init__(self, root: Path, profiles: Sequence[str] = ()) -> None:
        self.root = root
        self.profiles = list(profiles)

    def __repr__(self) -> str:
        return f"DirectoryConfigSourceProvider({str(self.root)!r})"

    def _wanted(self, profile: str) -> bool:
        return not self.profiles or profile in self.profiles

    def _profiled_properties(self, directory: Path, base: str, ordinal: int) -> List[ConfigSource]:
        sources: List[ConfigSource] = []
        for path in sorted(directory.glob(f"{base}-*.properties")):
            profile = _profile_from_stem(path.stem, base)
            if profile and self._wanted(profile):
                sources.append(PropertiesConfigSource(path, ordinal=ordinal, profile=profile))
        return sources

    def get_config_sources(self) -> List[ConfigSource]:
        if not self.root.is_dir():
            logger.debug("Resource directory %s does not exist", self.root)
            return []

        sources: List[ConfigSource] = []
        meta_inf = self.root / "META-INF"
        microprofile = meta_inf / f"{MICROPROFILE_CONFIG_STEM}.properties"
        if microprofile.is_file():
            sources.append(PropertiesConfigSource(microprofile, ordinal=MICROPROFILE_CONFIG_ORDINAL))
        if meta_inf.is_dir():
            sources.extend(
                self._profiled_properties(meta_inf, MICROPROFILE_CONFIG_STEM, MICROPROFILE_CONFIG_ORDINAL)
            )

        application = self.root / f"{APPLICATION_STEM}.properties"
        if application.is_file():
            sources.append(PropertiesConfigSource(application, ordinal=APPLICATION_PROPERTIES_ORDINAL))
        sources.extend(
            self._profiled_properties(self.root, APPLICATION_STEM, APPLICATION_PROPERTIES_ORDINAL)
        )

        for suffix in (".yaml", ".yml"):
            yaml_path = self.root / f"{APPLICATION_STEM}{suffix}"
            if yaml_path.is_file():
                sources.append(YamlConfigSource(yaml_path, ordinal=APPLICATION_YAML_ORDINAL))

        logger.debug("Discovered %d config sources under %s", len(sources), self.root)
        return sources
