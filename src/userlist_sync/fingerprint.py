"""Content fingerprints and the changed/unchanged decision."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path

from userlist_sync.errors import FingerprintError

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class ChangeDecision:
    """Outcome of comparing a freshly rendered artifact with the live one."""

    changed: bool
    new_fingerprint: str
    previous_fingerprint: str | None

    @property
    def first_run(self) -> bool:
        return self.previous_fingerprint is None


def file_fingerprint(path: Path, algorithm: str = "md5") -> str:
    """Stream a file through ``hashlib`` and return the hex digest."""

    digest = hashlib.new(algorithm)
    try:
        with path.open("rb") as handle:
            for chunk in iter(lambda: handle.read(CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as exc:
        raise FingerprintError(f"cannot read {path} to fingerprint it: {exc}") from exc
    return digest.hexdigest()


def detect_change(
    candidate_path: Path,
    live_path: Path,
    algorithm: str = "md5",
    logger: logging.Logger | None = None,
) -> ChangeDecision:
    """Compare the candidate file with the live file; a missing live file counts as changed."""

    effective_logger = logger or LOGGER
    new_fingerprint = file_fingerprint(candidate_path, algorithm)
    if not live_path.exists():
        effective_logger.info("compare.first_run live_path=%s", live_path)
        return ChangeDecision(changed=True, new_fingerprint=new_fingerprint, previous_fingerprint=None)

    previous_fingerprint = file_fingerprint(live_path, algorithm)
    changed = new_fingerprint != previous_fingerprint
    effective_logger.info(
        "compare.done changed=%s algorithm=%s new=%s previous=%s",
        changed,
        algorithm,
        new_fingerprint,
        previous_fingerprint,
    )
    return ChangeDecision(
        changed=changed,
        new_fingerprint=new_fingerprint,
        previous_fingerprint=previous_fingerprint,
    )
