"""Project commands: effective values, property informations, resolution."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mpconf_core.errors import MpconfError
from mpconf_core.project import ConfigProject
from mpconf_core.project_info import ProjectInfo

from ..util import load_settings

console = Console()

_ROOT_OPTION = typer.Option(
    Path("."),
    "--root",
    help="Project root directory",
    exists=True,
    file_okay=False,
    dir_okay=True,
)


def _open_project(root: Path, project_info_file: Optional[Path] = None) -> ConfigProject:
    try:
        settings = load_settings(root)
        project_info = ProjectInfo.load(project_info_file) if project_info_file else None
    except MpconfError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    return ConfigProject.from_root(root, settings, project_info=project_info)


def get(
    key: str = typer.Argument(..., help="Qualified property key, e.g. %dev.quarkus.http.port"),
    root: Path = _ROOT_OPTION,
    default: Optional[str] = typer.Option(None, "--default", help="Value printed when undefined"),
):
    """Print the effective (highest ordinal) raw value of a property."""
    project = _open_project(root)
    value = project.get_property(key, default)
    if value is None:
        console.print(f"[yellow]{escape(key)} is not defined[/yellow]")
        raise typer.Exit(1)
    typer.echo(value)


def info(
    key: str = typer.Argument(..., help="Property name without profile"),
    root: Path = _ROOT_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Emit JSON"),
):
    """List the winning value of every profile variant of a property."""
    project = _open_project(root)
    infos = project.get_property_informations(key)
    if as_json:
        typer.echo(json.dumps([asdict(i) for i in infos], indent=2))
        return
    if not infos:
        console.print(f"[yellow]{escape(key)} is not defined[/yellow]")
        raise typer.Exit(1)

    table = Table(title=f"Property informations: {key}")
    table.add_column("Key", style="cyan")
    table.add_column("Profile")
    table.add_column("Value", style="green")
    table.add_column("Ordinal", justify="right")
    table.add_column("Source")
    for i in infos:
        table.add_row(
            escape(i.property_name_with_profile),
            i.profile or "",
            escape(i.value or ""),
            str(i.ordinal),
            escape(i.source_id),
        )
    console.print(table)


def resolve(
    key: str = typer.Argument(..., help="Qualified property key"),
    root: Path = _ROOT_OPTION,
    project_info_file: Optional[Path] = typer.Option(
        None,
        "--project-info",
        help="JSON file with known property defaults",
        exists=True,
        dir_okay=False,
    ),
):
    """Print the value of a property with every ${...} expression resolved."""
    project = _open_project(root, project_info_file)
    resolution = project.resolve_property(key)
    if not resolution.is_resolved:
        reason = resolution.reason.value if resolution.reason else resolution.status.value
        console.print(f"[yellow]{escape(key)} could not be resolved ({reason})[/yellow]")
        raise typer.Exit(1)
    typer.echo(resolution.value)


def graph(
    root: Path = _ROOT_OPTION,
):
    """Print property reference edges and whether the graph is acyclic."""
    project = _open_project(root)
    reference_graph = project.property_graph()
    for source, target in reference_graph.edges():
        typer.echo(f"{source} -> {target}")
    cycle = reference_graph.find_cycle()
    if cycle:
        console.print(f"[red]Cycle: {escape(' -> '.join(cycle))}[/red]")
        raise typer.Exit(1)
    console.print("[green]acyclic[/green]")
