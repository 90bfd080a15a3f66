"""Mastercleaner Error System.

Provides structured error handling with:
- Numeric error codes for programmatic handling
- User-friendly messages
- Recovery hints for the person running the tool
- Context for debugging

Only the collaborators around the analysis core raise these errors. The
walker and classifier never fail a run: unreadable fields are treated as
absent and depth overruns truncate silently.
"""


from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Numeric error codes organized by category.

    Format: XYYY where X = category, YYY = specific error

    Categories:
        2xxx - Plugin errors
        5xxx - Configuration errors
        6xxx - Runtime errors
        7xxx - IO errors
    """

    # 2xxx - Plugin Errors
    PLUGIN_NOT_FOUND = 2001
    PLUGIN_PARSE_ERROR = 2002
    PLUGIN_INVALID_SCHEMA = 2003
    PLUGIN_NO_MISSING_MASTER = 2004
    PLUGIN_TOO_MANY_MISSING = 2005
    PLUGIN_MASTER_NOT_LISTED = 2006

    # 5xxx - Configuration Errors
    CONFIG_INVALID = 5002
    DATA_DIR_NOT_FOUND = 5004
    DATA_DIR_INVALID = 5005

    # 6xxx - Runtime Errors
    RUNTIME_STATE_INVALID = 6001

    # 7xxx - IO Errors
    FILE_NOT_FOUND = 7003
    FILE_PERMISSION_DENIED = 7004
    FILE_WRITE_FAILED = 7005

    @property
    def category(self) -> str:
        """Get the error category name."""
        prefix = self.value // 1000
        return {
            2: "plugin",
            5: "config",
            6: "runtime",
            7: "io",
        }.get(prefix, "unknown")

    @property
    def is_recoverable(self) -> bool:
        """Whether this error type is typically recoverable."""
        non_recoverable = {
            ErrorCode.CONFIG_INVALID,
            ErrorCode.PLUGIN_TOO_MANY_MISSING,
        }
        return self not in non_recoverable


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    # Plugin errors
    ErrorCode.PLUGIN_NOT_FOUND: "Plugin '{plugin}' not found at '{path}'.",
    ErrorCode.PLUGIN_PARSE_ERROR: "Failed to parse plugin '{plugin}': {detail}",
    ErrorCode.PLUGIN_INVALID_SCHEMA: "Invalid record dump for '{plugin}': {detail}",
    ErrorCode.PLUGIN_NO_MISSING_MASTER: "Plugin '{plugin}' has no missing masters.",
    ErrorCode.PLUGIN_TOO_MANY_MISSING: (
        "Plugin '{plugin}' has {count} missing masters and can only be cleaned manually."
    ),
    ErrorCode.PLUGIN_MASTER_NOT_LISTED: "'{master}' is not a master of plugin '{plugin}'.",

    # Config errors
    ErrorCode.CONFIG_INVALID: "Invalid configuration for '{key}': {detail}",
    ErrorCode.DATA_DIR_NOT_FOUND: "No game Data directory could be found.",
    ErrorCode.DATA_DIR_INVALID: "'{path}' is not a valid Data directory (missing {anchor}).",

    # Runtime errors
    ErrorCode.RUNTIME_STATE_INVALID: "Invalid runtime state: {detail}",

    # IO errors
    ErrorCode.FILE_NOT_FOUND: "File not found: {path}",
    ErrorCode.FILE_PERMISSION_DENIED: "Permission denied: {path}",
    ErrorCode.FILE_WRITE_FAILED: "Failed to write file: {path}",
}


RECOVERY_HINTS: dict[ErrorCode, list[str]] = {
    ErrorCode.PLUGIN_PARSE_ERROR: [
        "The plugin dump is usually corrupted; re-export it",
        "Contact the mod author and report the broken plugin",
    ],
    ErrorCode.PLUGIN_TOO_MANY_MISSING: [
        "Clean the plugin manually in your editor",
        "Install the missing masters instead of cleaning",
    ],
    ErrorCode.DATA_DIR_NOT_FOUND: [
        "Pass the directory explicitly with --data-dir",
        "Set discovery.data_dir in .mastercleaner/config.yaml",
        "Set MASTERCLEANER_DISCOVERY_DATA_DIR=<path>",
    ],
    ErrorCode.DATA_DIR_INVALID: [
        "Choose the Data folder that contains {anchor}",
    ],
}


class CleanerError(Exception):
    """Base error type for all mastercleaner errors.

    Example:
        >>> err = CleanerError(
        ...     code=ErrorCode.PLUGIN_NOT_FOUND,
        ...     context={"plugin": "Foo.esp", "path": "/data/Foo.esp"},
        ... )
        >>> print(err)
        [MC-2001] Plugin 'Foo.esp' not found at '/data/Foo.esp'.
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.context = context or {}
        self.cause = cause
        super().__init__(str(self))

    @property
    def message(self) -> str:
        """Get the formatted user-friendly message."""
        template = ERROR_MESSAGES.get(self.code, "An error occurred: {detail}")
        try:
            return template.format(**self.context)
        except KeyError:
            return template

    @property
    def recovery_hints(self) -> list[str]:
        """Get recovery suggestions for this error."""
        formatted = []
        for hint in RECOVERY_HINTS.get(self.code, []):
            try:
                formatted.append(hint.format(**self.context))
            except KeyError:
                formatted.append(hint)
        return formatted

    @property
    def is_recoverable(self) -> bool:
        """Whether this error is typically recoverable."""
        return self.code.is_recoverable

    @property
    def category(self) -> str:
        """Get the error category."""
        return self.code.category

    @property
    def error_id(self) -> str:
        """Get the error ID string (e.g., 'MC-2001')."""
        return f"MC-{self.code.value}"

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.message}"

    def __repr__(self) -> str:
        return f"CleanerError(code={self.code!r}, context={self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for logging/JSON output."""
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "category": self.category,
            "message": self.message,
            "recoverable": self.is_recoverable,
            "recovery_hints": self.recovery_hints,
            "context": self.context,
        }


# Convenience factory functions

def plugin_error(
    code: ErrorCode,
    plugin: str,
    detail: str = "",
    path: str = "",
    cause: Exception | None = None,
    **extra: Any,
) -> CleanerError:
    """Create a plugin-related error."""
    return CleanerError(
        code=code,
        context={"plugin": plugin, "detail": detail, "path": path, **extra},
        cause=cause,
    )


def io_error(code: ErrorCode, path: str, cause: Exception | None = None) -> CleanerError:
    """Create a file IO error."""
    return CleanerError(code=code, context={"path": path}, cause=cause)


def config_error(key: str, detail: str = "") -> CleanerError:
    """Create a CONFIG_INVALID error."""
    return CleanerError(
        code=ErrorCode.CONFIG_INVALID,
        context={"key": key, "detail": detail},
    )
