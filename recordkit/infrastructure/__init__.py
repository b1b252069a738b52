"""
Infrastructure package for recordkit.

Centralizes database connectivity concerns (connection factory, pooling and
the storage backend used by finders). Keep this layer focused on I/O and
resource management, decoupled from schema and query logic.
"""

from recordkit.infrastructure.backend import (
    PsycopgBackend,
    StorageBackend,
    default_backend,
)
from recordkit.infrastructure.db_factory import (
    PoolManager,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)

__all__ = [
    "PoolManager",
    "PsycopgBackend",
    "StorageBackend",
    "build_dsn",
    "default_backend",
    "get_sync_connection",
    "get_sync_pool",
]
