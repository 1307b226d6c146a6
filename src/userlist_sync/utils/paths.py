"""Path and filesystem helper functions."""

from __future__ import annotations

import os
from pathlib import Path
from uuid import uuid4

OWNER_READ_WRITE = 0o600


def atomic_temp_path(target_path: Path) -> Path:
    """Create a temp path in the same directory for atomic replacement."""

    return target_path.parent / f".{target_path.name}.{uuid4().hex}.tmp"


def touch_marker_file(path: Path) -> Path:
    """Create an empty owner-only marker file; an existing marker is left as is."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT, OWNER_READ_WRITE)
    os.close(fd)
    return path
