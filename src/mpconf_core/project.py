"""Project-level aggregation of config sources.

A :class:`ConfigProject` owns the ordered (descending ordinal) list of
config sources of one project and answers effective-value questions over
it. The list is built lazily, cached, and evicted whenever a config file
changes.

Rebuild discipline: rebuilds are serialised by a build lock; a rebuild
snapshots the generation counter first and publishes its list only if no
eviction happened meanwhile. Lists are immutable tuples, so a reader
never observes a half-built list.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .graph import PropertyGraph
from .project_info import ProjectInfo
from .resolver import CancellationToken, CycleScope, PropertyResolver, Resolution
from .settings import MpconfSettings
from .sources.base import ConfigSource, PropertyInformation
from .sources.providers import ConfigSourceProvider, DirectoryConfigSourceProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Snapshot:
    """Effective values and reference graph derived from one source list."""

    sources: Tuple[ConfigSource, ...]
    values: Dict[str, str]
    graph: PropertyGraph


class ConfigProject:
    """Ordered, cached collection of config sources for one project."""

    def __init__(
        self,
        providers: Sequence[ConfigSourceProvider],
        project_info: Optional[ProjectInfo] = None,
        cycle_scope: CycleScope = CycleScope.PROJECT,
    ) -> None:
        self.providers = list(providers)
        self.project_info = project_info
        self.cycle_scope = cycle_scope
        self._sources: Optional[Tuple[ConfigSource, ...]] = None
        self._snapshot: Optional[_Snapshot] = None
        self._generation = 0
        self._state_lock = threading.Lock()
        self._build_lock = threading.Lock()

    @classmethod
    def from_root(
        cls,
        project_root: Path,
        settings: Optional[MpconfSettings] = None,
        project_info: Optional[ProjectInfo] = None,
    ) -> "ConfigProject":
        """Project whose sources live in the configured resource directories."""
        settings = settings or MpconfSettings()
        providers = []
        seen = set()
        for resource_dir in settings.resource_dirs:
            directory = project_root / resource_dir
            resolved = directory.resolve()
            if resolved in seen:
                logger.debug("Resource directory %s already processed", directory)
                continue
            seen.add(resolved)
            providers.append(DirectoryConfigSourceProvider(directory, settings.profiles))
        return cls(providers, project_info=project_info, cycle_scope=settings.cycle_scope)

    # ------------------------------------------------------------------
    # Source list lifecycle
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    def get_config_sources(self) -> Tuple[ConfigSource, ...]:
        sources = self._sources
        if sources is None:
            sources = self.load_config_sources()
        return sources

    def evict_config_sources_cache(self) -> None:
        """Drop the cached source list (a properties or YAML file changed)."""
        with self._state_lock:
            self._sources = None
            self._snapshot = None
            self._generation += 1
        logger.debug("Config sources cache evicted (generation %d)", self._generation)

    evict_cache = evict_config_sources_cache

    def load_config_sources(self) -> Tuple[ConfigSource, ...]:
        with self._build_lock:
            with self._state_lock:
                if self._sources is not None:
                    # Another thread rebuilt while this one waited.
                    return self._sources
                generation = self._generation
            sources = self._build_sources()
            with self._state_lock:
                if self._generation == generation:
                    self._sources = sources
                else:
                    logger.debug("Discarding config sources built for stale generation %d", generation)
            return sources

    def _build_sources(self) -> Tuple[ConfigSource, ...]:
        loaded: List[Tuple[int, ConfigSource]] = []
        for provider in self.providers:
            try:
                sources = provider.get_config_sources()
            except Exception as e:
                logger.warning("Error while loading config sources from %r: %s", provider, e)
                continue
            for source in sources:
                try:
                    source.evict()
                    ordinal = source.ordinal
                except Exception as e:
                    logger.warning("Skipping config source %s: %s", source.source_id, e)
                    continue
                loaded.append((ordinal, source))
        # sort is stable: equal ordinals keep discovery order.
        loaded.sort(key=lambda item: -item[0])
        return tuple(source for _, source in loaded)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Value of ``key`` from the highest-ordinal source defining it."""
        for source in self.get_config_sources():
            value = source.get_property(key)
            if value is not None:
                return value
        return default

    def get_property_as_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        for source in self.get_config_sources():
            value = source.get_property_as_int(key)
            if value is not None:
                return value
        return default

    def get_property_informations(self, key: str) -> List[PropertyInformation]:
        """Winning value of every profile variant of ``key``, sorted by
        qualified name.

        Sources are visited in ascending ordinal order so a higher-ordinal
        definition of the same qualified name replaces a lower one.
        """
        by_name: Dict[str, PropertyInformation] = {}
        for source in reversed(self.get_config_sources()):
            infos = source.get_property_informations(key)
            if infos is None:
                continue
            for info in infos:
                by_name[info.property_name_with_profile] = info
        return [by_name[name] for name in sorted(by_name)]

    def has_property(self, key: str) -> bool:
        """True if any profile variant of ``key`` is defined."""
        return any(
            source.get_property_informations(key) is not None
            for source in self.get_config_sources()
        )

    def effective_values(self) -> Dict[str, str]:
        return dict(self._current_snapshot().values)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _current_snapshot(self) -> _Snapshot:
        sources = self.get_config_sources()
        snapshot = self._snapshot
        if snapshot is not None and snapshot.sources is sources:
            return snapshot
        values: Dict[str, str] = {}
        for source in reversed(sources):
            values.update(source.properties)
        snapshot = _Snapshot(sources=sources, values=values, graph=PropertyGraph.from_values(values))
        with self._state_lock:
            if self._sources is sources:
                self._snapshot = snapshot
        return snapshot

    def property_graph(self) -> PropertyGraph:
        return self._current_snapshot().graph

    def resolve_property(
        self,
        key: str,
        token: Optional[CancellationToken] = None,
        project_info: Optional[ProjectInfo] = None,
    ) -> Resolution:
        """Resolve ``key`` to a :class:`Resolution` (resolved, absent or cancelled)."""
        snapshot = self._current_snapshot()
        resolver = PropertyResolver(
            snapshot.values.get,
            snapshot.graph,
            project_info=project_info or self.project_info,
            cycle_scope=self.cycle_scope,
        )
        return resolver.resolve(key, token)

    def resolve(self, key: str) -> Optional[str]:
        """Resolved value of ``key``, or ``None`` when absent."""
        return self.resolve_property(key).value
