"""Config source base types."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..keys import split_profile

logger = logging.getLogger(__name__)

# Key a source may define to override its own ordinal (MicroProfile Config).
CONFIG_ORDINAL_KEY = "config_ordinal"
DEFAULT_ORDINAL = 100


@dataclass(frozen=True)
class PropertyInformation:
    """One profile variant of a property as defined by one source."""

    property_name_with_profile: str
    profile: Optional[str]
    value: Optional[str]
    source_id: str
    ordinal: int

    @property
    def property_name(self) -> str:
        return split_profile(self.property_name_with_profile)[1]


class ConfigSource(ABC):
    """One origin of configuration entries (a file or equivalent).

    Subclasses implement :meth:`_load_properties`, returning qualified key ->
    value. The mapping is loaded lazily, once, and dropped by :meth:`evict`.
    """

    def __init__(self, source_id: str, ordinal: int = DEFAULT_ORDINAL) -> None:
        self.source_id = source_id
        self._default_ordinal = ordinal
        self._properties: Optional[Dict[str, str]] = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.source_id!r}, ordinal={self._default_ordinal})"

    @abstractmethod
    def _load_properties(self) -> Dict[str, str]:
        """Read the origin; raise SourceLoadError if it cannot be decoded."""

    @property
    def properties(self) -> Dict[str, str]:
        with self._lock:
            if self._properties is None:
                self._properties = self._load_properties()
                logger.debug("Loaded %d properties from %s", len(self._properties), self.source_id)
            return self._properties

    def evict(self) -> None:
        with self._lock:
            self._properties = None

    @property
    def ordinal(self) -> int:
        raw = self.properties.get(CONFIG_ORDINAL_KEY)
        if raw is not None:
            try:
                return int(raw.strip())
            except ValueError:
                logger.warning("Ignoring invalid %s=%r in %s", CONFIG_ORDINAL_KEY, raw, self.source_id)
        return self._default_ordinal

    def property_names(self) -> List[str]:
        return list(self.properties)

    def get_property(self, key: str) -> Optional[str]:
        return self.properties.get(key)

    def get_property_as_int(self, key: str) -> Optional[int]:
        value = self.get_property(key)
        if value is None:
            return None
        try:
            return int(value.strip())
        except ValueError:
            logger.debug("Property %s=%r in %s is not an integer", key, value, self.source_id)
            return None

    def get_property_informations(self, key: str) -> Optional[List[PropertyInformation]]:
        """Every profile variant of ``key`` defined here, or ``None``.

        ``key`` is a property name without profile; a profiled key only
        matches itself.
        """
        key_profile, key_name = split_profile(key)
        ordinal = self.ordinal
        infos = []
        for qualified, value in self.properties.items():
            profile, name = split_profile(qualified)
            if name != key_name:
                continue
            if key_profile is not None and profile != key_profile:
                continue
            infos.append(
                PropertyInformation(
                    property_name_with_profile=qualified,
                    profile=profile,
                    value=value,
                    source_id=self.source_id,
                    ordinal=ordinal,
                )
            )
        return infos or None
