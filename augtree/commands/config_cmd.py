"""Config command for augtree CLI."""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from augtree.commands.state import get_state
from augtree.core.config import load_config
from augtree.core.errors import ConfigError

app = typer.Typer()
console = Console()


def _invalid(message: str) -> typer.Exit:
    console.print(f"[bold red]❌ Invalid configuration:[/] {escape(message)}", soft_wrap=True)
    return typer.Exit(1)


@app.command("show")
def show(ctx: typer.Context):
    """Show the effective session configuration."""
    try:
        cfg = get_state(ctx).session_config()
    except ValueError as e:
        raise _invalid(str(e))
    summary = cfg.get_config_summary()

    console.print("\n[bold]Current Configuration:[/]")
    console.print(f"  Source: [cyan]{escape(summary['source'] or '(built-in defaults)')}[/]")
    console.print(f"  Root: [cyan]{escape(summary['root'])}[/]")
    console.print(f"  Load path: [cyan]{escape(summary['loadpath'])}[/]")
    console.print(f"  Library: [cyan]{escape(summary['library'])}[/]")
    console.print(f"  Flags: [cyan]{', '.join(summary['flags']) or 'NONE'}[/]")
    console.print(f"  Transforms: [cyan]{summary['transform_count']}[/]")
    for xfm in cfg.transforms:
        console.print(f"    {escape(xfm.name or '')}: {escape(xfm.lens)} <- {escape(', '.join(xfm.incl))}")
    console.print()


@app.command("export")
def export(
    ctx: typer.Context,
    output_path: Path = typer.Argument(Path("augtree.yaml"), help="Where to write the template"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
):
    """Export the effective configuration as a template."""
    if output_path.exists() and not force:
        console.print(f"[bold red]❌ Error:[/] {escape(str(output_path))} exists (use --force)")
        raise typer.Exit(1)
    try:
        cfg = get_state(ctx).session_config()
    except ValueError as e:
        raise _invalid(str(e))
    cfg.export_template(output_path)
    console.print(f"[bold green]✔[/] Configuration template exported to [underline]{escape(str(output_path))}[/]")
    console.print("[dim]Edit this file to set root, flags and transforms[/]")


@app.command("validate")
def validate(config_file: Path = typer.Argument(..., help="Config file to validate")):
    """Validate a configuration file."""
    if not config_file.exists():
        raise _invalid(f"{config_file} does not exist")
    try:
        cfg = load_config(config_file)
    except ConfigError as e:
        raise _invalid(str(e))
    console.print(f"[bold green]✔[/] Configuration file is valid: [underline]{escape(str(config_file))}[/]")
    summary = cfg.get_config_summary()
    console.print(f"  Flags: {', '.join(summary['flags']) or 'NONE'}")
    console.print(f"  Transforms: {summary['transform_count']}")
