"""Logging configuration for mastercleaner.

Provides centralized logging setup with sensible defaults:
- Default: WARNING level (quiet operation)
- --debug flag: DEBUG level with full context
- MASTERCLEANER_DEBUG=true or MASTERCLEANER_LOG_LEVEL=DEBUG env vars
- Persistent logs: Stored in .mastercleaner/logs/ with session rotation

Usage:
    from mastercleaner.foundation.logging import configure_logging
    configure_logging(debug=debug)

Priority for level resolution (highest to lowest):
    1. Explicit `level` parameter (programmatic override)
    2. MASTERCLEANER_LOG_LEVEL env var (any level: DEBUG, INFO, WARNING, etc.)
    3. MASTERCLEANER_DEBUG=true env var (simple boolean)
    4. `debug=True` parameter (--debug flag)
    5. WARNING (default)
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_DEBUG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
_DEFAULT_FORMAT = "%(name)s: %(message)s"

# Session log retention
_MAX_LOG_SESSIONS = 10


def _get_log_directory(base: Path | None = None) -> Path:
    """Get or create the persistent log directory.

    Returns:
        Path to .mastercleaner/logs/ directory
    """
    log_dir = (base or Path.cwd()) / ".mastercleaner" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _cleanup_old_logs(log_dir: Path, max_sessions: int = _MAX_LOG_SESSIONS) -> None:
    """Remove old session logs, keeping only the most recent N."""
    if not log_dir.exists():
        return

    log_files = sorted(
        log_dir.glob("session_*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,  # Newest first
    )

    for old_log in log_files[max_sessions:]:
        try:
            old_log.unlink()
        except OSError:
            pass  # Another session may hold it open


def configure_logging(
    *,
    debug: bool = False,
    level: int | str | None = None,
    stream: object = None,
    persist: bool = False,
    log_base: Path | None = None,
) -> Path | None:
    """Configure logging for the mastercleaner CLI.

    Args:
        debug: Enable DEBUG level with detailed format
        level: Override log level (int or string like "DEBUG", "INFO")
        stream: Output stream (default: stderr)
        persist: Store logs in .mastercleaner/logs/ with session rotation
        log_base: Directory holding .mastercleaner/ (default: current directory)

    Returns:
        Path of the session log file when persisting, else None.
    """
    resolved_level: int
    if level is not None:
        resolved_level = _parse_level(level)
    elif env_level := os.environ.get("MASTERCLEANER_LOG_LEVEL"):
        resolved_level = _parse_level(env_level)
    elif os.environ.get("MASTERCLEANER_DEBUG", "").lower() in ("true", "1", "yes"):
        resolved_level = logging.DEBUG
    elif debug:
        resolved_level = logging.DEBUG
    else:
        resolved_level = logging.WARNING

    console_format = _DEBUG_FORMAT if resolved_level <= logging.DEBUG else _DEFAULT_FORMAT

    root_logger = logging.getLogger()
    # The file handler needs DEBUG records; the console handler filters on its own
    root_logger.setLevel(logging.DEBUG if persist else resolved_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(resolved_level)
    console_handler.setFormatter(logging.Formatter(console_format))
    root_logger.addHandler(console_handler)

    log_file: Path | None = None
    if persist:
        try:
            log_dir = _get_log_directory(log_base)
            _cleanup_old_logs(log_dir)

            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            log_file = log_dir / f"session_{timestamp}.log"

            file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(_DEBUG_FORMAT))
            root_logger.addHandler(file_handler)
        except OSError as e:
            # Non-fatal: keep console logging only
            sys.stderr.write(f"Warning: Could not enable persistent logging: {e}\n")
            log_file = None

    logger = logging.getLogger(__name__)
    logger.debug(
        "Logging configured: level=%s, debug=%s, persist=%s",
        logging.getLevelName(resolved_level),
        debug,
        persist,
    )
    return log_file


def _parse_level(level: int | str) -> int:
    """Parse log level from int or string."""
    if isinstance(level, int):
        return level
    numeric = getattr(logging, level.upper(), None)
    if isinstance(numeric, int):
        return numeric
    try:
        return int(level)
    except ValueError:
        return logging.WARNING
