"""Error taxonomy for sync runs.

Every failure raised by a pipeline stage is a :class:`UserlistSyncError`
carrying the name of the stage that failed. The command line is the only place
that turns these into a process exit code.
"""

from __future__ import annotations


class UserlistSyncError(RuntimeError):
    """Base class for all fatal sync-run failures."""

    stage = "sync"


class FetchError(UserlistSyncError):
    """Credential store failure; raised before any filesystem mutation."""

    stage = "fetch"


class ConnectError(FetchError):
    """The credential store could not be reached."""

    stage = "connect"


class QueryError(FetchError):
    """The credential query was rejected or timed out."""

    stage = "query"


class DecodeError(FetchError):
    """A credential row could not be turned into a record."""

    stage = "decode"


class RenderError(UserlistSyncError):
    """A credential set violated the rendering invariant."""

    stage = "render"


class TempWriteError(UserlistSyncError):
    stage = "temp-write"


class FingerprintError(UserlistSyncError):
    stage = "fingerprint"


class BackupError(UserlistSyncError):
    """The live artifact could not be copied; it is left as it was."""

    stage = "backup"


class PublishError(UserlistSyncError):
    stage = "publish"


class ReloadError(UserlistSyncError):
    """The reload action failed after the new artifact was already published."""

    stage = "reload"
