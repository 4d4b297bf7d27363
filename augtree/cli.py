#!/usr/bin/env python3
"""
augtree - inspect and edit configuration files through Augeas
Main CLI entry point
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from augtree.commands import config_cmd, tree_cmd
from augtree.commands.state import CliState

app = typer.Typer(
    name="augtree",
    help="Inspect and edit configuration files through Augeas",
    no_args_is_help=True,
    add_completion=True,
)

# Tree commands are registered directly (not as a sub-app)
app.command(name="get", help="Print the value at a path")(tree_cmd.get)
app.command(name="set", help="Set the value at a path")(tree_cmd.set_value)
app.command(name="clear", help="Clear the value at a path")(tree_cmd.clear)
app.command(name="match", help="List nodes matching a path expression")(tree_cmd.match)
app.command(name="rm", help="Remove nodes matching a path expression")(tree_cmd.rm)
app.command(name="mv", help="Move a subtree")(tree_cmd.mv)
app.command(name="print", help="Print a subtree")(tree_cmd.print_tree)
app.command(name="transforms", help="List registered transforms")(tree_cmd.transforms)

app.add_typer(config_cmd.app, name="config", help="Manage session configuration")


@app.callback()
def callback(
    ctx: typer.Context,
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Filesystem root (default: $AUGEAS_ROOT or /)"),
    loadpath: Optional[str] = typer.Option(None, "--loadpath", "-I", help="Extra lens directories, colon-separated"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Session config file (YAML)"),
    flag: Optional[List[str]] = typer.Option(None, "--flag", "-f", help="Session flag, e.g. NO_LOAD (repeatable)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log native calls"),
) -> None:
    """
    augtree - inspect and edit configuration files through Augeas

    Tree commands:
      get / set / clear / match / rm / mv / print / transforms

    Utilities:
      config                  - Manage session configuration
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    ctx.obj = CliState(root=root, loadpath=loadpath, config_file=config, flags=list(flag or []))


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
