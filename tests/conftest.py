from pathlib import Path
from typing import Dict, Optional

from hypothesis import settings

# Prevent Hypothesis from writing a local example database (e.g. `.hypothesis/`) during tests.
settings.register_profile("mpconf-tests", database=None)
settings.load_profile("mpconf-tests")


def write_resources(
    project_root: Path,
    files: Dict[str, str],
    *,
    resource_dir: str = "src/main/resources",
) -> Path:
    """Write config files under a project's resource directory.

    Args:
        project_root: Temporary project root (tmp_path).
        files: Mapping of path relative to the resource dir -> file content,
            e.g. ``{"application.properties": "x=1\\n"}``.
        resource_dir: Resource directory relative to ``project_root``.

    Returns:
        Path to the resource directory.
    """
    resources = project_root / resource_dir
    for relative, content in files.items():
        path = resources / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    resources.mkdir(parents=True, exist_ok=True)
    return resources


def write_settings(project_root: Path, content: str, *, path: Optional[Path] = None) -> Path:
    """Write an mpconf settings TOML (default: <root>/.mpconf/config.toml)."""
    target = path or project_root / ".mpconf" / "config.toml"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content.strip() + "\n", encoding="utf-8")
    return target
