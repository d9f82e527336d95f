"""Database connection module for EduLearn."""

from edulearn.core.database.async_cassandra import (
    AsyncCassandraConnection,
    init_async_cassandra,
    ping_cassandra,
    shutdown_async_cassandra,
)
from edulearn.core.database.errors import store_errors


__all__ = [
    "AsyncCassandraConnection",
    "init_async_cassandra",
    "ping_cassandra",
    "shutdown_async_cassandra",
    "store_errors",
]
