"""Tree commands for the augtree CLI (get, set, match, rm, mv, print, ...)."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from augtree.core.augeas import Augeas
from augtree.core.errors import AugeasError
from augtree.commands.state import get_state
from augtree.utils.debug import display_tree

console = Console()


def _fail(message: str) -> typer.Exit:
    console.print(f"[bold red]❌ Error:[/] {escape(message)}", soft_wrap=True)
    return typer.Exit(1)


@contextmanager
def open_session(ctx: typer.Context) -> Iterator[Augeas]:
    """Open a session from the CLI state, turning augtree errors into exit code 1."""
    try:
        cfg = get_state(ctx).session_config()
        with Augeas.from_config(cfg) as aug:
            yield aug
    except (AugeasError, ValueError) as e:
        raise _fail(str(e))


def _save(aug: Augeas, save: bool) -> None:
    if not save:
        console.print("[dim]Not saved (--no-save)[/]")
        return
    aug.save_or_raise()
    console.print("[bold green]✔[/] Saved")


def get(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the node to read"),
):
    """Print the value at PATH."""
    with open_session(ctx) as aug:
        value = aug.get(path)
        if value is None and not aug.exists(path):
            raise _fail(f"No node matches {path}")
    if value is None:
        console.print(f"{escape(path)} [dim](none)[/]", soft_wrap=True)
    else:
        console.print(f"{escape(path)} = {escape(value)}", soft_wrap=True)


def set_value(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the node to write"),
    value: str = typer.Argument(..., help="New value"),
    save: bool = typer.Option(True, "--save/--no-save", help="Write changes to disk"),
):
    """Set the value at PATH, creating the node if needed."""
    with open_session(ctx) as aug:
        aug.set_or_raise(path, value)
        _save(aug, save)


def clear(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the node to clear"),
    save: bool = typer.Option(True, "--save/--no-save", help="Write changes to disk"),
):
    """Clear the value at PATH (the node is kept)."""
    with open_session(ctx) as aug:
        aug.set_or_raise(path, None)
        _save(aug, save)


def match(
    ctx: typer.Context,
    expr: str = typer.Argument(..., help="Path expression"),
    values: bool = typer.Option(False, "--values", help="Also print each node's value"),
):
    """List the nodes matching EXPR."""
    with open_session(ctx) as aug:
        paths = aug.match(expr)
        if not paths:
            console.print(f"[yellow]No match for {escape(expr)}[/]")
            return
        for p in paths:
            if values:
                v = aug.get(p)
                shown = "(none)" if v is None else v
                console.print(f"{escape(p)} = {escape(shown)}", soft_wrap=True)
            else:
                console.print(escape(p), soft_wrap=True)


def rm(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path expression of the nodes to remove"),
    save: bool = typer.Option(True, "--save/--no-save", help="Write changes to disk"),
):
    """Remove the nodes matching PATH and their subtrees."""
    with open_session(ctx) as aug:
        count = aug.rm(path)
        if count < 0:
            raise _fail(f"Removing {path} failed")
        console.print(f"rm : {escape(path)} {count}", soft_wrap=True)
        if count:
            _save(aug, save)


def mv(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Node to move"),
    dest: str = typer.Argument(..., help="Destination path"),
    save: bool = typer.Option(True, "--save/--no-save", help="Write changes to disk"),
):
    """Move the subtree at SOURCE to DEST."""
    with open_session(ctx) as aug:
        if aug.mv(source, dest) != 0:
            raise _fail(f"Moving {source} to {dest} failed")
        _save(aug, save)


def print_tree(
    ctx: typer.Context,
    path: str = typer.Argument("/files", help="Starting node"),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", help="Maximum depth to show"),
):
    """Print the tree below PATH."""
    with open_session(ctx) as aug:
        display_tree(aug, path, depth, console=console)


def transforms(ctx: typer.Context):
    """List the transforms registered under /augeas/load."""
    with open_session(ctx) as aug:
        found = aug.transforms()
    if not found:
        console.print("[yellow]No transforms registered[/]")
        return
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Name")
    table.add_column("Lens")
    table.add_column("Include")
    table.add_column("Exclude")
    for xfm in found:
        table.add_row(
            escape(xfm.name or ""),
            escape(xfm.lens),
            escape("\n".join(xfm.incl)),
            escape("\n".join(xfm.excl)),
        )
    console.print(table)
