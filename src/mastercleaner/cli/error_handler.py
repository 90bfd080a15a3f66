"""CLI Error Handler.

Renders errors either for people (rich, default) or as JSON on stderr for
scripts wrapping the tool.
"""

import json
import sys
from typing import NoReturn

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from mastercleaner.foundation.errors import CleanerError, ErrorCode


def _as_cleaner_error(error: CleanerError | Exception) -> CleanerError:
    if isinstance(error, CleanerError):
        return error
    return CleanerError(
        code=ErrorCode.RUNTIME_STATE_INVALID,
        context={"detail": str(error)},
        cause=error,
    )


def handle_error(
    error: CleanerError | Exception,
    json_output: bool = False,
) -> NoReturn:
    """Report an error and exit.

    Args:
        error: The error to handle (CleanerError or generic Exception)
        json_output: If True, output JSON to stderr for programmatic use

    Raises:
        SystemExit: Always exits with code 1
    """
    error = _as_cleaner_error(error)

    if json_output:
        print(format_error_for_json(error), file=sys.stderr)
        sys.exit(1)

    _print_human_error(error)
    sys.exit(1)


def _print_human_error(error: CleanerError) -> None:
    """Print error in human-readable format."""
    console = Console(stderr=True)

    header = Text()
    header.append(f"{error.error_id}", style="bold red")
    header.append(f" {error.message}")
    console.print(header)

    if error.recovery_hints:
        console.print("\n[bold]What you can do:[/]")
        for i, hint in enumerate(error.recovery_hints, 1):
            console.print(f"  {i}. {escape(hint)}")


def format_error_for_json(error: CleanerError | Exception) -> str:
    """Format an error as a JSON string."""
    error = _as_cleaner_error(error)
    error_dict = error.to_dict()
    if error.cause:
        error_dict["cause"] = str(error.cause)
    return json.dumps(error_dict)
