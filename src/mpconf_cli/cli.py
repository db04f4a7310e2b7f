from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from .util import configure_stdio, set_global_config_file, set_verbose

app = typer.Typer(help="mpconf: inspect properties documents and resolve project configuration")


@app.callback()
def _init(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config-file",
        help="Path to an mpconf settings file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    configure_stdio()
    set_verbose(verbose)

    # Store the settings file path globally for use by commands
    set_global_config_file(config_file)


from .commands import config_cmd as config_cmd  # noqa: E402
from .commands import document as document_cmd  # noqa: E402
from .commands import project as project_cmd  # noqa: E402

app.add_typer(config_cmd.app, name="config", help="Settings inspection")
app.command(name="parse")(document_cmd.parse_cmd)
app.command(name="node-at")(document_cmd.node_at)
app.command(name="get")(project_cmd.get)
app.command(name="info")(project_cmd.info)
app.command(name="resolve")(project_cmd.resolve)
app.command(name="graph")(project_cmd.graph)


def main():
    app()
