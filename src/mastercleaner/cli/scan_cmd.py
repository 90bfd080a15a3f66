"""Scan command - triage the plugins of a Data directory.

Lists which plugins can be cleaned automatically (few enough missing
masters), which need manual cleaning and which could not be read.
"""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mastercleaner.cli.error_handler import handle_error
from mastercleaner.discovery import TriageResult, detect_data_dir, triage_plugins
from mastercleaner.foundation.config.loader import CleanerConfig
from mastercleaner.foundation.errors import CleanerError, ErrorCode

console = Console()


@click.command("scan")
@click.argument("data_dir", type=click.Path(file_okay=False, path_type=Path), required=False)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_obj
def scan(config: CleanerConfig, data_dir: Path | None, json_output: bool) -> None:
    """Triage every plugin in DATA_DIR by its missing masters.

    Without DATA_DIR the configured or detected Data directory is used.

    \b
    Examples:
        mastercleaner scan "C:/Games/Skyrim Special Edition/Data"
        mastercleaner scan ./Data --json
    """
    try:
        resolved = detect_data_dir(data_dir, config.discovery)
        if resolved is None:
            raise CleanerError(ErrorCode.DATA_DIR_NOT_FOUND)
        result = triage_plugins(resolved, config.discovery)
    except CleanerError as e:
        handle_error(e, json_output=json_output)

    if json_output:
        print(json.dumps(result.to_dict(), indent=2))
        return

    display_triage(result, config.discovery.max_missing_masters)


def display_triage(result: TriageResult, threshold: int) -> None:
    """Print triage results as rich tables."""
    console.print(f"[bold]Data directory:[/bold] {result.data_dir}")
    console.print(f"[dim]{result.scanned} plugin(s) scanned[/dim]\n")

    if result.unsafe:
        console.print(
            f"[bold red]More than {threshold} missing master(s); clean these manually:[/]"
        )
        table = Table(show_header=True, header_style="bold")
        table.add_column("Plugin")
        table.add_column("Missing masters", style="red")
        for entry in result.unsafe:
            table.add_row(entry.identity.name, ", ".join(m.name for m in entry.missing))
        console.print(table)
        console.print()

    if result.failed:
        console.print("[bold yellow]Could not be read:[/]")
        for failure in result.failed:
            console.print(f"  • {escape(failure.path.name)}: {escape(failure.error)}")
        console.print(
            "[dim]This is usually caused by a corrupted plugin. "
            "Contact the mod author and report it.[/dim]\n"
        )

    if not result.cleanable:
        console.print(f"[yellow]No plugins with 1 to {threshold} missing master(s) were found.[/yellow]")
        return

    console.print(f"[bold green]{len(result.cleanable)} plugin(s) can be cleaned:[/]")
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim", width=4)
    table.add_column("Plugin")
    table.add_column("Missing master", style="yellow")
    for i, entry in enumerate(result.cleanable, 1):
        table.add_row(str(i), entry.identity.name, ", ".join(m.name for m in entry.missing))
    console.print(table)
