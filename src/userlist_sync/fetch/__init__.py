"""Credential store access."""

from userlist_sync.fetch.credentials import (
    CREDENTIALS_QUERY,
    connect,
    fetch_credentials,
    query_credentials,
)

__all__ = [
    "CREDENTIALS_QUERY",
    "connect",
    "fetch_credentials",
    "query_credentials",
]
