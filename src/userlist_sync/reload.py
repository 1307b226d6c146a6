"""Reload marker bookkeeping and the external reload action."""

from __future__ import annotations

import logging
import signal
import subprocess
from pathlib import Path

from userlist_sync.config import ReloadConfig
from userlist_sync.errors import ReloadError
from userlist_sync.utils.paths import touch_marker_file

LOGGER = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 500


def mark_reload_owed(marker_path: Path, logger: logging.Logger | None = None) -> Path:
    """Create the reload marker; an existing marker is not an error."""

    effective_logger = logger or LOGGER
    try:
        touch_marker_file(marker_path)
    except OSError as exc:
        raise ReloadError(f"cannot create reload marker {marker_path}: {exc}") from exc
    effective_logger.info("reload.marked marker=%s", marker_path)
    return marker_path


def is_reload_owed(marker_path: Path) -> bool:
    """Return True iff the reload marker exists."""

    return marker_path.exists()


def clear_reload_marker(marker_path: Path, logger: logging.Logger | None = None) -> None:
    """Remove the reload marker if present."""

    effective_logger = logger or LOGGER
    try:
        marker_path.unlink(missing_ok=True)
    except OSError as exc:
        raise ReloadError(f"cannot remove reload marker {marker_path}: {exc}") from exc
    effective_logger.info("reload.marker_cleared marker=%s", marker_path)


def reload_argv(config: ReloadConfig) -> list[str]:
    """Return the argument vector for the reload action.

    A configured ``argv`` runs without a shell; otherwise the command string is
    handed to ``<shell> -ec``.
    """

    if config.argv:
        return list(config.argv)
    return [str(config.shell), "-ec", config.command]


def _describe_exit(returncode: int) -> str:
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = str(-returncode)
        return f"killed by signal {name}"
    return f"exited with status {returncode}"


def run_reload_command(config: ReloadConfig, logger: logging.Logger | None = None) -> None:
    """Run the reload action and raise :class:`ReloadError` unless it exits 0."""

    effective_logger = logger or LOGGER
    argv = reload_argv(config)
    effective_logger.info("reload.run argv=%s timeout_seconds=%s", argv, config.timeout_seconds)
    try:
        completed = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            timeout=config.timeout_seconds,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise ReloadError(f"reload command timed out after {config.timeout_seconds}s") from exc
    except OSError as exc:
        raise ReloadError(f"cannot start reload command {argv[0]}: {exc}") from exc

    if completed.returncode != 0:
        stderr_tail = (completed.stderr or "").strip()[-STDERR_TAIL_CHARS:]
        message = f"reload command {_describe_exit(completed.returncode)}"
        if stderr_tail:
            message = f"{message}: {stderr_tail}"
        raise ReloadError(message)

    effective_logger.info("reload.done")
