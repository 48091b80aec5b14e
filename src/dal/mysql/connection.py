import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import aiomysql

from common.errors import ConnectivityError, IntrospectionError
from dal.mysql.descriptor import ConnectionDescriptor
from dal.tracing import trace_query_operation

logger = logging.getLogger(__name__)

# Server errnos meaning the session cannot be used at all: too many connections,
# access denied, host blocked/not allowed, handshake and packet failures.
_CONNECTIVITY_SERVER_ERRNOS = frozenset(
    {1040, 1044, 1045, 1129, 1130, 1152, 1153, 1158, 1159, 1160, 1161}
)
_CONNECTIVITY_MESSAGE_PATTERNS = (
    "could not connect",
    "can't connect",
    "connection refused",
    "connection reset",
    "lost connection",
    "server has gone away",
)


def _driver_errno(exc: Exception) -> Optional[int]:
    if exc.args and isinstance(exc.args[0], int):
        return exc.args[0]
    return None


def is_connectivity_error(exc: Exception) -> bool:
    """Return True when a driver error means the source is unreachable or refused us.

    Client-side errors (2000-2999) and auth/host errors count; any other
    server error, including OperationalError for a missing routine or
    missing privilege, is a catalog failure.
    """
    errno = _driver_errno(exc)
    if errno is not None:
        return 2000 <= errno < 3000 or errno in _CONNECTIVITY_SERVER_ERRNOS
    message = str(exc).lower()
    return any(pattern in message for pattern in _CONNECTIVITY_MESSAGE_PATTERNS)


class MysqlSchemaSource:
    """Pooled, read-only access to the MySQL schema being introspected.

    Each query acquires its own connection from the pool, so concurrent
    catalog queries never share a connection.
    """

    def __init__(
        self,
        descriptor: ConnectionDescriptor,
        query_timeout: Optional[float] = 30.0,
        connect_timeout: float = 10.0,
        max_connections: int = 4,
    ) -> None:
        self.descriptor = descriptor
        self.query_timeout = query_timeout
        self.connect_timeout = connect_timeout
        self.max_connections = max(1, max_connections)
        self._pool: Optional[aiomysql.Pool] = None

    async def open(self) -> None:
        """Create the connection pool."""
        if self._pool is not None:
            return
        logger.info("Connecting to schema source %s", self.descriptor.describe())
        try:
            self._pool = await asyncio.wait_for(
                aiomysql.create_pool(
                    host=self.descriptor.host,
                    port=self.descriptor.port,
                    user=self.descriptor.user,
                    password=self.descriptor.password or "",
                    db=self.descriptor.database,
                    minsize=1,
                    maxsize=self.max_connections,
                    autocommit=True,
                    connect_timeout=self.connect_timeout,
                    cursorclass=aiomysql.DictCursor,
                ),
                timeout=self.connect_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ConnectivityError(
                f"Timed out connecting to {self.descriptor.describe()}."
            ) from exc
        except (aiomysql.MySQLError, OSError) as exc:
            raise ConnectivityError(
                f"Could not connect to {self.descriptor.describe()}: {exc}"
            ) from exc

    async def close(self) -> None:
        """Close pool resources."""
        if self._pool is not None:
            self._pool.close()
            await self._pool.wait_closed()
            self._pool = None

    async def __aenter__(self) -> "MysqlSchemaSource":
        await self.open()
        return self

    async def __aexit__(self, *_exc_info: Any) -> None:
        await self.close()

    @asynccontextmanager
    async def get_connection(self) -> AsyncIterator["_MysqlConnection"]:
        """Yield a connection wrapper scoped to one logical operation."""
        if self._pool is None:
            raise RuntimeError("Schema source not opened. Call MysqlSchemaSource.open().")
        try:
            conn = await asyncio.wait_for(self._pool.acquire(), timeout=self.connect_timeout)
        except asyncio.TimeoutError as exc:
            raise ConnectivityError("Timed out waiting for a schema connection.") from exc
        except (aiomysql.MySQLError, OSError) as exc:
            raise ConnectivityError(f"Could not acquire a schema connection: {exc}") from exc
        try:
            yield _MysqlConnection(conn, timeout=self.query_timeout)
        finally:
            await self._pool.release(conn)


class _MysqlConnection:
    """Adapter providing asyncpg-like fetch helpers over aiomysql."""

    def __init__(self, conn: aiomysql.Connection, timeout: Optional[float]) -> None:
        self._conn = conn
        self._timeout = timeout

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        async def _run():
            async with self._conn.cursor() as cursor:
                await cursor.execute(sql, params or None)
                return list(await cursor.fetchall())

        return await self._guarded(sql, _run())

    async def fetchrow(self, sql: str, *params: Any) -> Optional[Dict[str, Any]]:
        async def _run():
            async with self._conn.cursor() as cursor:
                await cursor.execute(sql, params or None)
                return await cursor.fetchone()

        return await self._guarded(sql, _run())

    async def _guarded(self, sql: str, operation):
        try:
            return await trace_query_operation(
                "dal.schema.query",
                provider="mysql",
                sql=sql,
                operation=asyncio.wait_for(operation, timeout=self._timeout),
            )
        except asyncio.TimeoutError as exc:
            raise ConnectivityError(
                f"Catalog query exceeded {self._timeout}s timeout."
            ) from exc
        except aiomysql.MySQLError as exc:
            if is_connectivity_error(exc):
                raise ConnectivityError(f"Schema source connection failed: {exc}") from exc
            raise IntrospectionError(f"Catalog query failed: {exc}") from exc
