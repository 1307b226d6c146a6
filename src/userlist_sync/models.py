"""Credential records and credential-set construction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from userlist_sync.errors import DecodeError

FORBIDDEN_CHARACTERS: tuple[str, ...] = ("\n", "\r", "\x00")


@dataclass(frozen=True, slots=True)
class CredentialRecord:
    """One role credential as stored in the pooler's auth file."""

    principal: str
    secret: str

    def __repr__(self) -> str:
        return f"CredentialRecord(principal={self.principal!r}, secret='***')"


def has_forbidden_characters(value: str) -> bool:
    """Return True if ``value`` would break the one-line-per-record format."""

    return any(character in value for character in FORBIDDEN_CHARACTERS)


def _decode_row(row: Sequence[object], index: int) -> CredentialRecord:
    if len(row) != 2:
        raise DecodeError(f"row {index} has {len(row)} columns, expected 2 (principal, secret)")
    principal, secret = row[0], row[1]
    if not isinstance(principal, str) or not isinstance(secret, str):
        raise DecodeError(
            f"row {index} has non-text columns: principal={type(principal).__name__} "
            f"secret={type(secret).__name__}"
        )
    if principal == "":
        raise DecodeError(f"row {index} has an empty principal")
    if has_forbidden_characters(principal):
        raise DecodeError(f"row {index} principal {principal!r} contains a line break or NUL")
    if has_forbidden_characters(secret):
        raise DecodeError(f"row {index} secret for principal {principal!r} contains a line break or NUL")
    return CredentialRecord(principal=principal, secret=secret)


def build_credential_set(rows: Iterable[Sequence[object]]) -> list[CredentialRecord]:
    """Decode raw ``(principal, secret)`` rows into a duplicate-free credential list.

    Raises:
        DecodeError: if a row is malformed or a principal appears twice.
    """

    records: list[CredentialRecord] = []
    seen: set[str] = set()
    for index, row in enumerate(rows):
        record = _decode_row(row, index)
        if record.principal in seen:
            raise DecodeError(f"duplicate principal {record.principal!r} in credential rows")
        seen.add(record.principal)
        records.append(record)
    return records


def exclude_roles(rows: Iterable[Sequence[object]], exclude: Iterable[str]) -> list[tuple[object, object]]:
    """Drop roles that are excluded by name or are direct members of an excluded role.

    Each row is ``(principal, secret, member_of)``; the kept rows come back as
    ``(principal, secret)`` pairs in their original order.
    """

    excluded = set(exclude)
    kept: list[tuple[object, object]] = []
    for index, row in enumerate(rows):
        if len(row) != 3:
            raise DecodeError(f"row {index} has {len(row)} columns, expected 3 (principal, secret, member_of)")
        principal, secret, member_of = row[0], row[1], row[2]
        if not isinstance(member_of, (list, tuple)) or not all(isinstance(name, str) for name in member_of):
            raise DecodeError(f"row {index} has a malformed membership list: {type(member_of).__name__}")
        if principal in excluded or excluded.intersection(member_of):
            continue
        kept.append((principal, secret))
    return kept
