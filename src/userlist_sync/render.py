"""Render credential sets into PgBouncer auth-file content."""

from __future__ import annotations

from typing import Iterable

from userlist_sync.errors import RenderError
from userlist_sync.models import CredentialRecord, has_forbidden_characters

ENCODING = "utf-8"


def quote(value: str) -> str:
    """Quote a field the way PgBouncer reads it: embedded quotes are doubled."""

    return '"' + value.replace('"', '""') + '"'


def render_line(record: CredentialRecord) -> str:
    """Render one record as ``"principal" "secret"``."""

    if has_forbidden_characters(record.principal) or has_forbidden_characters(record.secret):
        raise RenderError(f"credential for principal {record.principal!r} cannot be rendered on one line")
    return f"{quote(record.principal)} {quote(record.secret)}"


def render_credentials(records: Iterable[CredentialRecord]) -> bytes:
    """Render records sorted by line text, always ending with a single newline."""

    lines = sorted(render_line(record) for record in records)
    return ("\n".join(lines) + "\n").encode(ENCODING)
