"""In-memory config source."""

from typing import Dict, Mapping

from .base import DEFAULT_ORDINAL, ConfigSource


class InMemoryConfigSource(ConfigSource):
    """Wraps a qualified key -> value mapping (tests, editors' unsaved buffers)."""

    def __init__(
        self,
        values: Mapping[str, str],
        ordinal: int = DEFAULT_ORDINAL,
        source_id: str = "<memory>",
    ) -> None:
        super().__init__(source_id, ordinal)
        self._values = dict(values)

    def _load_properties(self) -> Dict[str, str]:
        return dict(self._values)
