"""Clean command - the interactive cleaning flow.

1. Find the Data directory and triage its plugins
2. Let the user pick a cleanable plugin
3. Write a dummy master so the plugin loads in the editor
4. Write the missing-master report into the Data directory
5. Print the steps that finish the job in the editor
"""

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from mastercleaner.cleaner import analyze_plugin, load_target_plugin, place_dummy_master, save_report
from mastercleaner.cli.error_handler import handle_error
from mastercleaner.cli.report_cmd import display_summary
from mastercleaner.cli.scan_cmd import display_triage
from mastercleaner.discovery import PluginTriage, detect_data_dir, triage_plugins
from mastercleaner.foundation.config.loader import CleanerConfig
from mastercleaner.foundation.errors import CleanerError
from mastercleaner.model.identity import CollectionIdentity

console = Console()


@click.command("clean")
@click.option(
    "--data-dir", "-d",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Game Data directory (default: configured or detected)",
)
@click.option(
    "--select", "-s",
    type=click.IntRange(min=1),
    default=None,
    help="Number of the plugin to clean, as listed (skips the prompt)",
)
@click.option("--no-dummy", is_flag=True, help="Do not write a dummy master")
@click.pass_obj
def clean(config: CleanerConfig, data_dir: Path | None, select: int | None, no_dummy: bool) -> None:
    """Pick a plugin with a missing master and prepare it for cleaning.

    \b
    Examples:
        mastercleaner clean
        mastercleaner clean --data-dir ./Data --select 2
    """
    settings = config.discovery
    try:
        resolved = detect_data_dir(data_dir, settings, confirm=_confirm_detected)
        if resolved is None:
            entered = click.prompt(
                "Data directory not found. Enter the path to your Data folder",
                type=click.Path(file_okay=False, path_type=Path),
            )
            resolved = detect_data_dir(entered, settings)

        with console.status("Scanning plugins, please be patient..."):
            result = triage_plugins(resolved, settings)
    except CleanerError as e:
        handle_error(e)

    display_triage(result, settings.max_missing_masters)
    if not result.cleanable:
        return

    count = len(result.cleanable)
    if select is None:
        select = click.prompt(
            "\nNumber of the plugin to clean",
            type=click.IntRange(1, count),
        )
    elif select > count:
        raise click.BadParameter(f"{select} is not in the range 1-{count}.", param_hint="--select")

    chosen = result.cleanable[select - 1]
    missing = _choose_master(chosen)
    console.print(f"\n[bold]Selected plugin:[/bold] {chosen.identity.name}")
    console.print(f"[bold]Missing master:[/bold] {missing.name}\n")

    try:
        if not no_dummy:
            dummy_path = place_dummy_master(resolved, missing, config)
            console.print(f"Dummy master write target: {dummy_path}")

        with console.status("Scanning selected plugin deeply (this may take a while)..."):
            plugin = load_target_plugin(chosen.path)
            report = analyze_plugin(plugin, missing, config)
            report_path = save_report(report, chosen.path, config, output_dir=resolved)
    except CleanerError as e:
        handle_error(e)

    console.print()
    display_summary(report, report_path)
    _print_next_steps(chosen, config.report.edit_script, dummy=not no_dummy)


def _confirm_detected(path: Path) -> bool:
    console.print(f"Detected Data directory: [cyan]{escape(str(path))}[/cyan]")
    return click.confirm("Is this Data directory location correct?", default=True)


def _choose_master(chosen: PluginTriage) -> CollectionIdentity:
    """The missing master to clean against; asks when there is more than one."""
    if len(chosen.missing) == 1:
        return chosen.missing[0]
    names = [m.name for m in chosen.missing]
    name = click.prompt(
        f"{chosen.identity.name} misses several masters; clean against",
        type=click.Choice(names, case_sensitive=False),
        default=names[0],
    )
    return CollectionIdentity(name)


def _print_next_steps(chosen: PluginTriage, edit_script: str, dummy: bool) -> None:
    steps = [
        f"1. Start your editor and load {chosen.identity.name}"
        + (" together with the dummy master." if dummy else "."),
        f"2. Right-click {chosen.identity.name} and apply the script "
        f"[bold]{edit_script}[/bold] (it must be installed in the editor's Edit Scripts).",
        "3. Save when prompted.",
    ]
    console.print(Panel("\n".join(steps), title="Next steps", border_style="blue"))
