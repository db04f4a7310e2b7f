from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

# Global variable to store custom settings file path
_global_config_file: Optional[Path] = None
_verbose = False


def set_global_config_file(config_file: Optional[Path]) -> None:
    """Set (or clear) the global settings file path for use by commands."""
    global _global_config_file
    _global_config_file = config_file.resolve() if config_file else None


def get_global_config_file() -> Optional[Path]:
    """Get the global settings file path if set."""
    return _global_config_file


def set_verbose(verbose: bool) -> None:
    global _verbose
    _verbose = verbose


def configure_stdio() -> None:
    """Make CLI output robust across Windows console encodings.

    Some Windows terminals use a non-UTF8 encoding (e.g., cp1252). Printing
    tree glyphs can then raise UnicodeEncodeError and abort the command, so
    stdout/stderr are configured to replace unencodable characters.
    """

    if os.name != "nt":
        return

    for stream in (sys.stdout, sys.stderr):
        try:
            # Keep the current encoding, but make encoding errors non-fatal.
            stream.reconfigure(errors="replace")
        except (AttributeError, ValueError):
            continue


def configure_logging(level: str) -> None:
    """Route library logging through rich; ``--verbose`` forces DEBUG."""
    effective = "DEBUG" if _verbose else level
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    root.addHandler(RichHandler(show_path=False, markup=False))
    root.setLevel(effective)


def load_settings(root: Path):
    """Load effective settings for ``root`` and configure logging from them."""
    from mpconf_core.settings import SettingsLoader

    settings = SettingsLoader.load(root, get_global_config_file())
    configure_logging(settings.log_level)
    return settings
