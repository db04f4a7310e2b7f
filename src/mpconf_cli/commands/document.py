"""Document inspection commands: parse and node-at."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import typer
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from mpconf_core.nodes import NodeKind
from mpconf_core.parser import parse

console = Console()


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Cannot read {escape(str(path))}: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _label(document, node) -> str:
    end = node.end if node.closed else "unterminated"
    text = document.logical_text_of(node) if node.kind is not NodeKind.DOCUMENT else ""
    return f"{node.kind.value} [{node.start}, {end}] {text!r}"


def _to_dict(document, node) -> Dict[str, Any]:
    entries: Dict[int, Dict[str, Any]] = {}
    for _, current in document.walk(node):
        entry = {
            "kind": current.kind.value,
            "start": current.start,
            "end": current.end,
            "text": document.text_of(current),
            "children": [],
        }
        entries[current.index] = entry
        if current is not node:
            entries[current.parent]["children"].append(entry)
    return entries[node.index]


def parse_cmd(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Properties file"),
    as_json: bool = typer.Option(False, "--json", help="Emit the tree as JSON"),
):
    """Print the node tree of a properties file."""
    document = parse(_read(file))
    if as_json:
        typer.echo(json.dumps(_to_dict(document, document.root), indent=2))
        return

    tree = Tree(escape(_label(document, document.root)))
    branches = {document.root.index: tree}
    for _, node in document.walk():
        if node.parent is None:
            continue
        branches[node.index] = branches[node.parent].add(escape(_label(document, node)))
    console.print(tree)


def node_at(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Properties file"),
    offset: int = typer.Argument(..., min=0, help="Character offset"),
):
    """Print the node found at a character offset."""
    document = parse(_read(file))
    if offset > len(document.text):
        console.print(f"[red]Offset {offset} is past the end of the document ({len(document.text)})[/red]")
        raise typer.Exit(1)
    node = document.find_node_at(offset)
    typer.echo(_label(document, node))
