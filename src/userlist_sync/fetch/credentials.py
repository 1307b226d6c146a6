"""Fetch role credentials from PostgreSQL."""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Sequence

import psycopg

from userlist_sync.config import DatabaseConfig
from userlist_sync.errors import ConnectError, QueryError
from userlist_sync.models import CredentialRecord, build_credential_set, exclude_roles

LOGGER = logging.getLogger(__name__)

# One row per role with a secret, carrying the names of the roles it is a
# direct member of. pg_authid is only readable by superusers.
CREDENTIALS_QUERY = """
select
    id.rolname::text,
    id.rolpassword::text,
    array(
        select r.rolname::text
        from pg_catalog.pg_auth_members as m
            join pg_catalog.pg_roles as r on m.roleid = r.oid
        where m.member = id.oid
        order by 1
    ) as member_of
from pg_catalog.pg_authid as id
where id.rolpassword is not null
order by 1
"""

SET_STATEMENT_TIMEOUT = "select set_config('statement_timeout', %s, true)"


def connect(config: DatabaseConfig, timeout_seconds: float | None = None) -> psycopg.Connection:
    """Open a connection, waiting at most ``timeout_seconds`` (default: the whole budget)."""

    budget = config.timeout_seconds if timeout_seconds is None else timeout_seconds
    try:
        return psycopg.connect(
            config.dsn.get_secret_value(),
            connect_timeout=max(1, math.ceil(budget)),
            application_name=config.application_name,
        )
    except psycopg.Error as exc:
        raise ConnectError(f"cannot connect to credential store: {exc}") from exc


def query_credentials(
    conn: psycopg.Connection,
    exclude: Sequence[str],
    logger: logging.Logger | None = None,
    timeout_seconds: float | None = None,
) -> list[CredentialRecord]:
    """Run the credential query in a read-only transaction on an open connection.

    When ``timeout_seconds`` is given it becomes the transaction-local
    ``statement_timeout``.
    """

    effective_logger = logger or LOGGER
    try:
        conn.read_only = True
        with conn.transaction():
            with conn.cursor() as cursor:
                if timeout_seconds is not None:
                    cursor.execute(SET_STATEMENT_TIMEOUT, [str(max(1, int(timeout_seconds * 1000)))])
                cursor.execute(CREDENTIALS_QUERY)
                rows = cursor.fetchall()
    except psycopg.errors.QueryCanceled as exc:
        raise QueryError(f"credential query exceeded the time budget: {exc}") from exc
    except psycopg.Error as exc:
        raise QueryError(f"credential query failed: {exc}") from exc

    records = build_credential_set(exclude_roles(rows, exclude))
    effective_logger.info(
        "fetch.rows roles=%s kept=%s exclude=%s",
        len(rows),
        len(records),
        ",".join(exclude),
    )
    return records


def fetch_credentials(
    config: DatabaseConfig,
    exclude: Sequence[str],
    logger: logging.Logger | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> list[CredentialRecord]:
    """Return the credentials of every non-excluded role that has a secret.

    Connect and query share one deadline of ``config.timeout_seconds``; the
    query only gets what the connect left over.
    """

    effective_logger = logger or LOGGER
    deadline = clock() + config.timeout_seconds
    effective_logger.info("fetch.connect application_name=%s", config.application_name)
    with connect(config) as conn:
        remaining = deadline - clock()
        if remaining <= 0:
            raise QueryError(
                f"credential query exceeded the time budget: connect used the whole {config.timeout_seconds}s"
            )
        return query_credentials(conn, exclude, logger=effective_logger, timeout_seconds=remaining)
