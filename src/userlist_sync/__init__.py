"""Keep PgBouncer's userlist.txt in sync with PostgreSQL role credentials."""

__version__ = "0.1.0"
