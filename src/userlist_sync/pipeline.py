"""Single-pass sync orchestration: fetch, render, compare, back up, publish, reload."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Any, Callable, Literal, Sequence
from uuid import uuid4

from userlist_sync.config import AppSettings, ReloadConfig
from userlist_sync.fetch.credentials import fetch_credentials
from userlist_sync.fingerprint import detect_change
from userlist_sync.models import CredentialRecord
from userlist_sync.publish import (
    backup_live_artifact,
    discard_temp_artifact,
    publish_artifact,
    write_temp_artifact,
)
from userlist_sync.reload import (
    clear_reload_marker,
    is_reload_owed,
    mark_reload_owed,
    run_reload_command,
)
from userlist_sync.render import render_credentials

LOGGER = logging.getLogger(__name__)

SyncOutcome = Literal["NO_CHANGE", "RELOAD_INVOKED", "NO_RELOAD_OWED", "DRY_RUN"]
CredentialFetcher = Callable[[Sequence[str]], Sequence[CredentialRecord]]


@dataclass(frozen=True, slots=True)
class SyncRunResult:
    """Return object for one sync run."""

    run_id: str
    outcome: SyncOutcome
    changed: bool
    credential_count: int
    new_fingerprint: str
    previous_fingerprint: str | None
    live_path: Path
    backup_path: Path | None
    reload_invoked: bool
    duration_seconds: float

    def as_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "outcome": self.outcome,
            "changed": self.changed,
            "credential_count": self.credential_count,
            "new_fingerprint": self.new_fingerprint,
            "previous_fingerprint": self.previous_fingerprint,
            "live_path": str(self.live_path),
            "backup_path": str(self.backup_path) if self.backup_path else None,
            "reload_invoked": self.reload_invoked,
            "duration_seconds": round(self.duration_seconds, 3),
        }


def _reload_if_owed(config: ReloadConfig, marker_path: Path, logger: logging.Logger) -> bool:
    """Invoke the reload action when the marker says one is owed."""

    if not is_reload_owed(marker_path):
        logger.info("reload.not_owed marker=%s", marker_path)
        return False
    run_reload_command(config, logger=logger)
    if config.consume_marker:
        clear_reload_marker(marker_path, logger=logger)
    return True


def run_sync(
    settings: AppSettings,
    *,
    fetcher: CredentialFetcher | None = None,
    dry_run: bool = False,
    now: datetime | None = None,
    logger: logging.Logger | None = None,
) -> SyncRunResult:
    """Run one sync pass and return its outcome.

    Nothing on disk is touched before the credentials are fetched and rendered.
    The temp artifact is removed on every path where it is not promoted to the
    live path. Backup happens before publish and publish before the reload
    marker is written.
    """

    effective_logger = logger or LOGGER
    fetch = fetcher or partial(fetch_credentials, settings.database, logger=effective_logger)
    live_path = settings.paths.userlist_path
    marker_path = settings.paths.reload_trigger_file

    run_id = f"sync-{uuid4().hex[:12]}"
    started_mono = time.monotonic()
    effective_logger.info("sync.start run_id=%s live_path=%s dry_run=%s", run_id, live_path, dry_run)

    records = list(fetch(settings.exclude))
    content = render_credentials(records)
    effective_logger.info("render.done records=%s bytes=%s", len(records), len(content))

    temp_path = write_temp_artifact(live_path, content, logger=effective_logger)
    promoted = False
    backup_path: Path | None = None
    reload_invoked = False
    try:
        decision = detect_change(
            temp_path,
            live_path,
            algorithm=settings.fingerprint.algorithm,
            logger=effective_logger,
        )
        outcome: SyncOutcome
        if dry_run:
            outcome = "DRY_RUN"
        elif not decision.changed:
            effective_logger.info("sync.unchanged live_path=%s; skipping update", live_path)
            outcome = "NO_CHANGE"
            if settings.reload.check_on_unchanged:
                reload_invoked = _reload_if_owed(settings.reload, marker_path, effective_logger)
                if reload_invoked:
                    outcome = "RELOAD_INVOKED"
        else:
            if not decision.first_run:
                backup_path = backup_live_artifact(live_path, now, logger=effective_logger)
            publish_artifact(temp_path, live_path, logger=effective_logger)
            promoted = True
            mark_reload_owed(marker_path, logger=effective_logger)
            reload_invoked = _reload_if_owed(settings.reload, marker_path, effective_logger)
            outcome = "RELOAD_INVOKED" if reload_invoked else "NO_RELOAD_OWED"
    finally:
        if not promoted:
            discard_temp_artifact(temp_path, logger=effective_logger)

    result = SyncRunResult(
        run_id=run_id,
        outcome=outcome,
        changed=decision.changed,
        credential_count=len(records),
        new_fingerprint=decision.new_fingerprint,
        previous_fingerprint=decision.previous_fingerprint,
        live_path=live_path,
        backup_path=backup_path,
        reload_invoked=reload_invoked,
        duration_seconds=time.monotonic() - started_mono,
    )
    effective_logger.info(
        "sync.summary run_id=%s outcome=%s changed=%s records=%s backup_path=%s duration_seconds=%.3f",
        result.run_id,
        result.outcome,
        result.changed,
        result.credential_count,
        result.backup_path,
        result.duration_seconds,
    )
    return result
