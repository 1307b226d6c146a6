"""Test doubles and filesystem helpers shared across test modules."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence

from userlist_sync.errors import ConnectError
from userlist_sync.models import CredentialRecord, build_credential_set


class StaticFetcher:
    """Credential fetcher stand-in that returns fixed rows and records calls."""

    def __init__(self, rows: Sequence[tuple[str, str]]) -> None:
        self.rows = list(rows)
        self.calls: list[list[str]] = []

    def __call__(self, exclude: Sequence[str]) -> list[CredentialRecord]:
        self.calls.append(list(exclude))
        return build_credential_set(self.rows)


class UnreachableFetcher:
    def __call__(self, exclude: Sequence[str]) -> list[CredentialRecord]:
        raise ConnectError("cannot connect to credential store: connection refused")


def reload_count(reload_log: Path) -> int:
    if not reload_log.exists():
        return 0
    return len(reload_log.read_text(encoding="utf-8").splitlines())


def stray_temp_files(directory: Path) -> list[Path]:
    if not directory.exists():
        return []
    return sorted(path for path in directory.iterdir() if path.name.endswith(".tmp"))


def backups_in(directory: Path) -> list[Path]:
    if not directory.exists():
        return []
    return sorted(path for path in directory.iterdir() if ".backup-" in path.name)


class FakeCursor:
    def __init__(self, rows: Sequence[Any], error: Exception | None = None) -> None:
        self.rows = list(rows)
        self.error = error
        self.executed: list[tuple[str, Any]] = []

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def execute(self, query: str, params: Any = None) -> None:
        self.executed.append((query, params))
        if self.error is not None:
            raise self.error

    def fetchall(self) -> list[Any]:
        return list(self.rows)


class FakeConnection:
    """Just enough of a psycopg connection for the credential fetcher."""

    def __init__(self, cursor: FakeCursor) -> None:
        self._cursor = cursor
        self.read_only = False
        self.read_only_during_transaction: bool | None = None
        self.transactions = 0
        self.closed = False

    def __enter__(self) -> "FakeConnection":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.closed = True

    @contextmanager
    def transaction(self) -> Iterator[None]:
        self.transactions += 1
        self.read_only_during_transaction = self.read_only
        yield

    def cursor(self) -> FakeCursor:
        return self._cursor
