"""Temp-file staging, timestamped backups, and atomic publish of the live artifact."""

from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path

from userlist_sync.errors import BackupError, PublishError, TempWriteError
from userlist_sync.utils.paths import OWNER_READ_WRITE, atomic_temp_path
from userlist_sync.utils.time_utils import utc_epoch_seconds

LOGGER = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup-"


def backup_path_for(live_path: Path, moment: datetime | None = None) -> Path:
    """Return ``<live-path>.backup-<unix-seconds>`` for ``moment`` (UTC)."""

    return live_path.with_name(f"{live_path.name}{BACKUP_SUFFIX}{utc_epoch_seconds(moment)}")


def list_backups(live_path: Path) -> list[Path]:
    """Return existing backups of ``live_path``, oldest first."""

    prefix = f"{live_path.name}{BACKUP_SUFFIX}"
    if not live_path.parent.exists():
        return []
    backups = [
        candidate
        for candidate in live_path.parent.iterdir()
        if candidate.name.startswith(prefix) and candidate.name[len(prefix) :].isdigit()
    ]
    return sorted(backups, key=lambda candidate: int(candidate.name[len(prefix) :]))


def _remove_quietly(path: Path, logger: logging.Logger) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("cleanup.unlink_failed path=%s error=%s", path, exc)


def write_temp_artifact(live_path: Path, content: bytes, logger: logging.Logger | None = None) -> Path:
    """Write ``content`` to an owner-only temp file beside ``live_path`` and return its path."""

    effective_logger = logger or LOGGER
    temp_path = atomic_temp_path(live_path)
    try:
        live_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, OWNER_READ_WRITE)
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
    except OSError as exc:
        _remove_quietly(temp_path, effective_logger)
        raise TempWriteError(f"cannot write temporary artifact {temp_path}: {exc}") from exc

    effective_logger.debug("stage.temp_written path=%s bytes=%s", temp_path, len(content))
    return temp_path


def discard_temp_artifact(temp_path: Path, logger: logging.Logger | None = None) -> None:
    """Remove a temp artifact that was not promoted."""

    effective_logger = logger or LOGGER
    if temp_path.exists():
        _remove_quietly(temp_path, effective_logger)
        effective_logger.debug("stage.temp_discarded path=%s", temp_path)


def backup_live_artifact(
    live_path: Path,
    moment: datetime | None = None,
    logger: logging.Logger | None = None,
) -> Path:
    """Copy the live artifact to a timestamped backup without touching the original.

    The backup is created exclusively: an existing backup with the same name is
    never overwritten.

    Raises:
        BackupError: if the copy cannot be completed; a partial backup is removed.
    """

    effective_logger = logger or LOGGER
    backup_path = backup_path_for(live_path, moment)
    created = False
    try:
        with live_path.open("rb") as source:
            fd = os.open(backup_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, OWNER_READ_WRITE)
            created = True
            with os.fdopen(fd, "wb") as target:
                shutil.copyfileobj(source, target)
                target.flush()
                os.fsync(target.fileno())
    except FileExistsError as exc:
        raise BackupError(f"backup {backup_path} already exists; refusing to overwrite it") from exc
    except OSError as exc:
        if created:
            _remove_quietly(backup_path, effective_logger)
        raise BackupError(f"cannot back up {live_path} to {backup_path}: {exc}") from exc

    effective_logger.info("backup.created live_path=%s backup_path=%s", live_path, backup_path)
    return backup_path


def publish_artifact(temp_path: Path, live_path: Path, logger: logging.Logger | None = None) -> Path:
    """Atomically replace ``live_path`` with ``temp_path`` via a same-directory rename."""

    effective_logger = logger or LOGGER
    if temp_path.parent.resolve() != live_path.parent.resolve():
        raise PublishError(f"temporary artifact {temp_path} is not in the directory of {live_path}")
    try:
        os.replace(temp_path, live_path)
    except OSError as exc:
        raise PublishError(f"cannot replace {live_path} with {temp_path}: {exc}") from exc

    effective_logger.info("publish.replaced live_path=%s", live_path)
    return live_path
