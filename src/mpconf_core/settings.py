"""Settings for mpconf itself.

Layer order (later wins):
1) Built-in defaults (MpconfSettings field defaults)
2) <project_root>/.mpconf/config.toml (optional)
3) An explicit settings file (``--config-file``), if given

Example ``.mpconf/config.toml``::

    resource_dirs = ["src/main/resources"]
    cycle_scope = "component"
    log_level = "INFO"
    profiles = ["dev", "prod"]
"""

import logging
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ConfigError
from .resolver import CycleScope

# Conditional TOML import: stdlib tomllib (3.11+) or fallback tomli (<3.11)
try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

logger = logging.getLogger(__name__)

SETTINGS_DIR = ".mpconf"
SETTINGS_FILE = "config.toml"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class MpconfSettings(BaseModel):
    """Effective mpconf settings."""

    resource_dirs: List[str] = Field(
        default_factory=lambda: ["src/main/resources"],
        description="Resource directories relative to the project root",
    )
    cycle_scope: CycleScope = Field(default=CycleScope.PROJECT)
    log_level: str = Field(default="WARNING")
    profiles: List[str] = Field(
        default_factory=list,
        description="Profiles whose application-<profile> files are read; empty reads all",
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("resource_dirs")
    @classmethod
    def validate_resource_dirs(cls, v: List[str]) -> List[str]:
        cleaned = [d.strip() for d in v if d and d.strip()]
        if not cleaned:
            raise ValueError("resource_dirs must list at least one directory")
        return cleaned

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level


class SettingsLoader:
    """Load and layer mpconf settings."""

    @staticmethod
    def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        result: dict[str, Any] = dict(base)
        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = SettingsLoader._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    @staticmethod
    def _read_toml_optional(path: Path) -> dict[str, Any]:
        """Read TOML settings file; return {} if not found."""
        if not path.exists():
            return {}
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load TOML from {path}: {e}")
        logger.debug("Loaded settings layer %s", path)
        return data

    @staticmethod
    def settings_path(project_root: Path) -> Path:
        return project_root / SETTINGS_DIR / SETTINGS_FILE

    @staticmethod
    def load(project_root: Path, config_file: Optional[Path] = None) -> MpconfSettings:
        """Return the effective settings for ``project_root``.

        Raises:
            ConfigError: If a layer is not valid TOML or a value is invalid.
        """
        merged: dict[str, Any] = {}
        layers = [SettingsLoader.settings_path(project_root)]
        if config_file is not None:
            if not config_file.exists():
                raise ConfigError(f"Settings file not found: {config_file}")
            layers.append(config_file)
        for path in layers:
            merged = SettingsLoader._deep_merge(merged, SettingsLoader._read_toml_optional(path))
        try:
            return MpconfSettings.model_validate(merged)
        except ValueError as e:
            raise ConfigError(f"Invalid mpconf settings: {e}")
