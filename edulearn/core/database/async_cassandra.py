"""Async Cassandra connection using cassandra-asyncio-driver.

The cluster connection itself is synchronous; the returned session exposes
``aexecute()`` so every query runs without blocking the event loop. Keyspace
and module tables are created at startup from CQL templates owned by each
module (``<MODULE>_TABLES_CQL``).

Lightweight transactions (``IF NOT EXISTS`` / ``IF ...``) are used for email
uniqueness and signup state transitions, so the default execution profile
pins both the regular and the serial consistency level.
"""

import structlog
from cassandra import ConsistencyLevel
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import EXEC_PROFILE_DEFAULT, ExecutionProfile
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from edulearn.auth.models import AUTH_TABLES_CQL
from edulearn.config.settings import get_settings
from edulearn.progress.models import PROGRESS_TABLES_CQL
from edulearn.signup_requests.models import SIGNUP_TABLES_CQL
from edulearn.videos.models import VIDEOS_TABLES_CQL


logger = structlog.get_logger(__name__)

TABLE_GROUPS: dict[str, list[str]] = {
    "auth": AUTH_TABLES_CQL,
    "signup_requests": SIGNUP_TABLES_CQL,
    "progress": PROGRESS_TABLES_CQL,
    "videos": VIDEOS_TABLES_CQL,
}


class AsyncCassandraConnection:
    """Process-wide holder for the cluster and its session."""

    _cluster: Cluster | None = None
    _session = None  # cassandra_asyncio Session

    @classmethod
    def connect(cls):
        """Connect to the cluster, reusing the session when already open.

        Returns:
            Active Cassandra session with aexecute() support

        Raises:
            ConnectionError: If no contact point accepts the connection
        """
        if cls._session is not None:
            return cls._session

        settings = get_settings()

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        profile = ExecutionProfile(
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            consistency_level=ConsistencyLevel.LOCAL_QUORUM,
            serial_consistency_level=ConsistencyLevel.LOCAL_SERIAL,
            request_timeout=settings.cassandra_request_timeout,
        )

        cls._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            execution_profiles={EXEC_PROFILE_DEFAULT: profile},
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            cls._session = cls._cluster.connect()
        except Exception as e:
            logger.error(
                "async_cassandra_connection_failed",
                hosts=settings.cassandra_hosts,
                error=str(e),
            )
            cls._cluster.shutdown()
            cls._cluster = None
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        logger.info(
            "async_cassandra_connected",
            hosts=settings.cassandra_hosts,
            port=settings.cassandra_port,
            protocol_version=settings.cassandra_protocol_version,
        )
        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        """Close session and cluster."""
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None
        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
            logger.info("async_cassandra_closed")


async def ping_cassandra(session) -> bool:
    """Run a trivial query against the local node.

    Returns:
        True when the node answered, False otherwise
    """
    try:
        await session.aexecute("SELECT release_version FROM system.local")
    except Exception as e:
        logger.warning("cassandra_ping_failed", error=str(e))
        return False
    return True


async def init_async_keyspace(session, keyspace: str) -> None:
    """Create the keyspace if it does not exist.

    Production uses NetworkTopologyStrategy with three replicas; every other
    environment gets a single-replica SimpleStrategy keyspace.
    """
    settings = get_settings()

    if settings.is_production:
        replication = "'class': 'NetworkTopologyStrategy', 'datacenter1': 3"
    else:
        replication = "'class': 'SimpleStrategy', 'replication_factor': 1"

    await session.aexecute(
        f"CREATE KEYSPACE IF NOT EXISTS {keyspace} "
        f"WITH replication = {{{replication}}} AND durable_writes = true"
    )
    logger.info("async_keyspace_ready", keyspace=keyspace)


async def init_async_tables(session, keyspace: str) -> None:
    """Create every module's tables and indexes.

    Templates are formatted with the keyspace and applied in registration
    order. All statements are idempotent.
    """
    for group, templates in TABLE_GROUPS.items():
        for cql_template in templates:
            await session.aexecute(cql_template.format(keyspace=keyspace))
        logger.info("async_tables_ready", group=group, keyspace=keyspace)


async def init_async_cassandra():
    """Connect, then create keyspace and tables.

    Returns:
        Configured Cassandra session with aexecute() support
    """
    settings = get_settings()

    session = AsyncCassandraConnection.connect()
    await init_async_keyspace(session, settings.cassandra_keyspace)
    session.set_keyspace(settings.cassandra_keyspace)
    await init_async_tables(session, settings.cassandra_keyspace)

    logger.info("async_cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session


async def shutdown_async_cassandra() -> None:
    """Shutdown async Cassandra connection."""
    AsyncCassandraConnection.disconnect()
