"""Report command - classify one plugin's links into a missing master."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from mastercleaner.analysis.report import Bucket, MissingMasterReport
from mastercleaner.cleaner import analyze_plugin, load_target_plugin, resolve_missing_master, save_report
from mastercleaner.cli.error_handler import handle_error
from mastercleaner.foundation.config.loader import CleanerConfig
from mastercleaner.foundation.errors import CleanerError

console = Console()


@click.command("report")
@click.argument("plugin", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--missing", "-m",
    default=None,
    help="Missing master file name (default: detected from the plugin's directory)",
)
@click.option(
    "--output", "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for the report (default: next to the plugin)",
)
@click.option(
    "--format", "fmt",
    type=click.Choice(["json", "yaml"]),
    default=None,
    help="Report format (default: report.format from config)",
)
@click.option(
    "--max-depth",
    type=click.IntRange(min=0),
    default=None,
    help="Deepest nesting level searched (default: walker.max_depth from config)",
)
@click.option("--json", "json_output", is_flag=True, help="Output summary as JSON")
@click.pass_obj
def report(
    config: CleanerConfig,
    plugin: Path,
    missing: str | None,
    output: Path | None,
    fmt: str | None,
    max_depth: int | None,
    json_output: bool,
) -> None:
    """Write the missing-master report for PLUGIN.

    \b
    Examples:
        mastercleaner report Data/Foo.esp --missing Bar.esp
        mastercleaner report Data/Foo.esp -o reports --format yaml
    """
    try:
        loaded = load_target_plugin(plugin)
        master = resolve_missing_master(loaded, plugin, config, missing)
        result = analyze_plugin(loaded, master, config, max_depth=max_depth)
        report_path = save_report(result, plugin, config, output_dir=output, fmt=fmt)
    except CleanerError as e:
        handle_error(e, json_output=json_output)

    if json_output:
        print(json.dumps(summarize(result, report_path), indent=2))
        return

    display_summary(result, report_path)


def summarize(result: MissingMasterReport, report_path: Path) -> dict:
    """Machine-readable summary of a written report."""
    return {
        "plugin": result.plugin,
        "missing_master": result.missing_master.name,
        "report": str(report_path),
        "entries": {bucket.value: n for bucket, n in result.counts().items()},
        "safe_links": result.safe_link_count,
        "other_links": result.other_link_count,
    }


def display_summary(result: MissingMasterReport, report_path: Path) -> None:
    """Print the per-section counts of a written report."""
    console.print(f"[bold]Plugin:[/bold] {result.plugin}")
    console.print(f"[bold]Missing master:[/bold] {result.missing_master.name}\n")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Section")
    table.add_column("Records", justify="right")
    table.add_column("Links", justify="right")
    for bucket, count in result.counts().items():
        links = "-" if bucket.is_owned else str(result.link_count(bucket))
        table.add_row(bucket.value, str(count), links)
    console.print(table)

    if result.entries(Bucket.UNSAFE_OTHER_LINKS):
        console.print(
            f"[yellow]{result.other_link_count} link(s) in other records cannot be "
            "removed mechanically; review OtherLinks by hand.[/yellow]"
        )
    if result.is_empty:
        console.print("[green]No references to the missing master were found.[/green]")

    console.print(f"\n[bold]Report written to:[/bold] {report_path}")
