"""Config source backed by a properties document."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from ..errors import SourceLoadError
from ..keys import PROFILE_PREFIX, qualified_name
from ..nodes import Document
from ..parser import parse
from .base import DEFAULT_ORDINAL, ConfigSource


class PropertiesConfigSource(ConfigSource):
    """A ``.properties`` file (or in-memory text in the same format).

    When ``profile`` is set (``application-dev.properties``) every key that
    has no profile of its own is exposed as ``%profile.key``.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        ordinal: int = DEFAULT_ORDINAL,
        profile: Optional[str] = None,
        text: Optional[str] = None,
        source_id: Optional[str] = None,
    ) -> None:
        if path is None and text is None:
            raise ValueError("PropertiesConfigSource needs a path or text")
        super().__init__(source_id or (str(path) if path is not None else "<text>"), ordinal)
        self.path = path
        self.profile = profile
        self._text = text
        self._document: Optional[Document] = None

    @property
    def document(self) -> Document:
        self.properties  # lazy load fills _document
        assert self._document is not None
        return self._document

    def _read_text(self) -> str:
        if self._text is not None:
            return self._text
        assert self.path is not None
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceLoadError(self.source_id, str(e))

    def _load_properties(self) -> Dict[str, str]:
        self._document = parse(self._read_text())
        mapping = self._document.to_mapping()
        if self.profile is None:
            return mapping
        return {
            (key if key.startswith(PROFILE_PREFIX) else qualified_name(self.profile, key)): value
            for key, value in mapping.items()
        }

    def evict(self) -> None:
        super().evict()
        self._document = None
