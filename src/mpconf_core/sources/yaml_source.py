"""Config source backed by a YAML document (``application.yaml``).

Only the subset needed for configuration is honoured: nested mappings
become dotted keys, a top-level ``"%profile"`` mapping scopes its keys to
that profile, scalar lists become comma-separated values and other lists
are indexed (``key[0]``).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..errors import SourceLoadError
from ..keys import PROFILE_PREFIX, qualified_name
from .base import ConfigSource

logger = logging.getLogger(__name__)

APPLICATION_YAML_ORDINAL = 255


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_yaml(data: Dict[Any, Any]) -> Dict[str, str]:
    """Flatten a loaded YAML mapping into qualified key -> value."""
    out: Dict[str, str] = {}

    def visit(node: Any, name: str, profile: Optional[str]) -> None:
        if isinstance(node, dict):
            for key, child in node.items():
                part = _scalar(key)
                if not name and profile is None and part.startswith(PROFILE_PREFIX) and isinstance(child, dict):
                    visit(child, "", part[len(PROFILE_PREFIX) :])
                    continue
                visit(child, f"{name}.{part}" if name else part, profile)
        elif isinstance(node, list):
            if all(not isinstance(item, (dict, list)) for item in node):
                out[qualified_name(profile, name)] = ",".join(_scalar(item) for item in node)
            else:
                for index, item in enumerate(node):
                    visit(item, f"{name}[{index}]", profile)
        elif name:
            out[qualified_name(profile, name)] = _scalar(node)

    visit(data, "", None)
    return out


class YamlConfigSource(ConfigSource):
    """``application.yaml`` / ``application.yml``."""

    def __init__(
        self,
        path: Optional[Path] = None,
        ordinal: int = APPLICATION_YAML_ORDINAL,
        text: Optional[str] = None,
        source_id: Optional[str] = None,
    ) -> None:
        if path is None and text is None:
            raise ValueError("YamlConfigSource needs a path or text")
        super().__init__(source_id or (str(path) if path is not None else "<yaml>"), ordinal)
        self.path = path
        self._text = text

    def _load_properties(self) -> Dict[str, str]:
        try:
            if self._text is not None:
                data = yaml.safe_load(self._text)
            else:
                assert self.path is not None
                with open(self.path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise SourceLoadError(self.source_id, str(e))
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise SourceLoadError(self.source_id, "top level must be a mapping")
        return flatten_yaml(data)
