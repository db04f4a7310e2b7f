from __future__ import annotations

import json
from pathlib import Path

import typer

from mpconf_core.errors import ConfigError

from ..util import load_settings

app = typer.Typer(help="Settings inspection")


@app.command("show")
def show(
    root: Path = typer.Option(Path("."), "--root", help="Project root directory", file_okay=False),
):
    """Print the effective mpconf settings as JSON."""
    try:
        settings = load_settings(root)
    except ConfigError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(settings.model_dump(mode="json"), indent=2))
