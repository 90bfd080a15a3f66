"""Main CLI entry point.

    mastercleaner scan [DATA_DIR]
    mastercleaner report PLUGIN --missing MASTER
    mastercleaner clean
    mastercleaner config show|init
"""

import sys
from pathlib import Path

import click
from rich.console import Console

from mastercleaner import __version__
from mastercleaner.cli.clean_cmd import clean
from mastercleaner.cli.config_cmd import config
from mastercleaner.cli.error_handler import handle_error
from mastercleaner.cli.report_cmd import report
from mastercleaner.cli.scan_cmd import scan
from mastercleaner.foundation.config.loader import load_config
from mastercleaner.foundation.errors import CleanerError
from mastercleaner.foundation.logging import configure_logging

console = Console()


def cli_entrypoint() -> None:
    """Wrapped entrypoint with global error handling.

    Catches CleanerError and displays it instead of a traceback.
    Called from pyproject.toml [project.scripts].
    """
    try:
        main(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        console.print("\n[dim]Aborted[/dim]")
        sys.exit(130)
    except Exception as e:
        handle_error(e, json_output=False)


@click.group()
@click.version_option(__version__, prog_name="mastercleaner")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: .mastercleaner/config.yaml)",
)
@click.option(
    "--log-file", is_flag=True,
    help="Also write a session log to .mastercleaner/logs/",
)
@click.pass_context
def main(ctx: click.Context, debug: bool, config_path: Path | None, log_file: bool) -> None:
    """Find and report references into missing masters.

    A plugin whose master is gone still points at that master's records.
    mastercleaner finds those references and writes a report an editor
    script uses to remove them.
    """
    log_path = configure_logging(debug=debug, persist=log_file)
    if log_path is not None:
        ctx.call_on_close(lambda: console.print(f"[dim]Log written to: {log_path}[/dim]"))

    try:
        ctx.obj = load_config(config_path)
    except CleanerError as e:
        handle_error(e)


main.add_command(scan)
main.add_command(report)
main.add_command(clean)
main.add_command(config)
