"""Config command - inspect and create mastercleaner configuration."""

import json
from dataclasses import asdict
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mastercleaner.cli.error_handler import handle_error
from mastercleaner.foundation.config.loader import get_config, load_config, save_default_config
from mastercleaner.foundation.errors import CleanerError

console = Console()


@click.group("config")
def config() -> None:
    """Manage mastercleaner configuration.

    Configuration is loaded from (in priority order):
    1. Environment variables (MASTERCLEANER_*)
    2. .mastercleaner/config.yaml (project-local)
    3. ~/.mastercleaner/config.yaml (user-global)
    4. Built-in defaults

    \b
    Examples:
        mastercleaner config show
        mastercleaner config init --global
    """


@config.command()
@click.option("--path", type=click.Path(dir_okay=False, path_type=Path), help="Config file path to show")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def show(path: Path | None, json_output: bool) -> None:
    """Show the effective configuration."""
    try:
        cfg = load_config(path) if path else get_config()
    except CleanerError as e:
        handle_error(e, json_output=json_output)

    data = asdict(cfg)
    if json_output:
        print(json.dumps(data, indent=2))
        return

    table = Table(title="mastercleaner configuration")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value")
    for section, values in data.items():
        for key, value in values.items():
            shown = ", ".join(value) if isinstance(value, (list, tuple)) else str(value)
            table.add_row(f"{section}.{key}", escape(shown))
    console.print(table)

    console.print("\n[dim]Config sources:[/dim]")
    for candidate in (Path(".mastercleaner/config.yaml"), Path.home() / ".mastercleaner" / "config.yaml"):
        if candidate.exists():
            console.print(f"  [green]✓[/green] {escape(str(candidate))}")
        else:
            console.print(f"  [dim]○ {escape(str(candidate))} (not found)[/dim]")


@config.command()
@click.option(
    "--path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path(".mastercleaner/config.yaml"),
    show_default=True,
    help="Config file path",
)
@click.option("--global", "global_config", is_flag=True, help="Create in ~/.mastercleaner/ instead")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init(path: Path, global_config: bool, force: bool) -> None:
    """Create a config file holding the defaults."""
    config_path = Path.home() / ".mastercleaner" / "config.yaml" if global_config else path
    if config_path.exists() and not force:
        raise click.UsageError(f"{config_path} already exists (use --force to overwrite)")

    saved_path = save_default_config(config_path)
    console.print(f"[green]✓[/green] Config file created: {escape(str(saved_path))}")
    console.print("\n[dim]Edit this file to change how plugins are scanned and reported.[/dim]")
