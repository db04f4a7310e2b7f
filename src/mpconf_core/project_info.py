"""Pydantic models for read-only project metadata.

Project metadata describes properties known from outside the parsed
documents (for example, extension defaults discovered by a build tool).
Resolution consults it after the configuration sources.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigError


class KnownProperty(BaseModel):
    """A property definition that does not come from a config file."""

    name: str = Field(..., description="Property name, e.g. quarkus.http.port")
    type: Optional[str] = Field(None, description="Java type, e.g. java.lang.Integer")
    default_value: Optional[str] = Field(None, description="Value used when no source defines it")
    description: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ProjectInfo(BaseModel):
    """Known properties of one project."""

    project_uri: Optional[str] = None
    properties: List[KnownProperty] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def _index(self) -> Dict[str, KnownProperty]:
        # Later definitions win, like a later line in a properties file.
        return {prop.name: prop for prop in self.properties}

    def get(self, name: str) -> Optional[KnownProperty]:
        return self._index().get(name)

    def is_known(self, name: str) -> bool:
        return name in self._index()

    def default_value(self, name: str) -> Optional[str]:
        prop = self.get(name)
        return prop.default_value if prop is not None else None

    @classmethod
    def load(cls, path: Path) -> "ProjectInfo":
        """Load project metadata from a JSON file."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load project info from {path}: {e}")
        try:
            return cls.model_validate(data)
        except ValueError as e:
            raise ConfigError(f"Invalid project info in {path}: {e}")
