"""Shared utility helpers."""

from userlist_sync.utils.paths import atomic_temp_path, touch_marker_file
from userlist_sync.utils.time_utils import now_utc, utc_epoch_seconds

__all__ = [
    "atomic_temp_path",
    "touch_marker_file",
    "now_utc",
    "utc_epoch_seconds",
]
