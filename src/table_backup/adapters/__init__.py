"""Database adapters package.

Provides the ``DatabaseClient`` Protocol consumed by the backup engine and
the async PostgreSQL implementation.

Usage:
    from table_backup.adapters import DatabaseClient, AsyncPostgresClient
"""

from table_backup.adapters.base import DatabaseClient, Parameter
from table_backup.adapters.postgres import AsyncPostgresClient

__all__ = [
    "DatabaseClient",
    "Parameter",
    "AsyncPostgresClient",
]
