"""Async MySQL connector with connection pooling."""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, List, Optional
import logging

import aiomysql
import pymysql

from core.config import PoolConfig
from core.exceptions import DatabaseConnectionError, DriverError, NotConnectedError
from database.descriptor import ConnectionDescriptor
from database.normalizer import DriverOutcome

logger = logging.getLogger(__name__)


def to_driver_placeholders(statement: str) -> str:
    """Rewrite ``?`` placeholders to the driver's ``%s`` style.

    Only applies when the statement holds at least one ``?`` outside quoted
    text; literal ``%`` signs are then doubled so the driver keeps them.
    """
    out = []
    quote = None
    escaped = False
    replaced = 0
    for ch in statement:
        if quote:
            out.append("%%" if ch == "%" else ch)
            if escaped:
                escaped = False
            elif ch == "\\" and quote != "`":
                escaped = True
            elif ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append("%s")
            replaced += 1
        elif ch == "%":
            out.append("%%")
        else:
            out.append(ch)
    return "".join(out) if replaced else statement


def driver_error_details(error: Exception):
    """Extract (message, errno, sqlstate) from a PyMySQL error."""
    args = getattr(error, "args", ()) or ()
    code = args[0] if args and isinstance(args[0], int) else None
    if len(args) > 1:
        message = str(args[1])
    else:
        message = str(error) or error.__class__.__name__
    state = getattr(error, "sqlstate", None)
    return message, code, state


class MySQLConnector:
    """Owns one aiomysql pool for a single connection descriptor."""

    def __init__(self, descriptor: ConnectionDescriptor, pool_config: PoolConfig):
        self.descriptor = descriptor
        self.pool_config = pool_config
        self._pool = None

    async def initialize_pool(self):
        """Initialize aiomysql connection pool.

        Multi-statement execution stays disabled: the client flags passed to
        the driver never include CLIENT.MULTI_STATEMENTS.
        """
        try:
            self._pool = await aiomysql.create_pool(
                host=self.descriptor.host,
                port=self.descriptor.port,
                user=self.descriptor.user,
                password=self.descriptor.credential,
                db=self.descriptor.database,
                minsize=min(self.pool_config.min_size, self.pool_config.pool_size),
                maxsize=self.pool_config.pool_size,
                connect_timeout=self.pool_config.connect_timeout,
                pool_recycle=self.pool_config.pool_recycle,
                charset=self.pool_config.charset,
                autocommit=True
            )
            logger.info(
                f"MySQL connection pool initialized for {self.descriptor.masked()} "
                f"(size: {self.pool_config.pool_size})"
            )
        except Exception as e:
            logger.error(f"Failed to initialize MySQL pool for {self.descriptor.masked()}: {e}")
            message = driver_error_details(e)[0] if isinstance(e, pymysql.err.MySQLError) else str(e)
            raise DatabaseConnectionError(message or e.__class__.__name__, {"target": self.descriptor.masked()}) from e

    @asynccontextmanager
    async def acquire(self):
        """Borrow one connection; it goes back to the pool on every exit path."""
        if self._pool is None:
            raise NotConnectedError("Connection pool is not initialized")

        conn = await asyncio.wait_for(self._pool.acquire(), timeout=self.pool_config.acquire_timeout)
        try:
            yield conn
        finally:
            self._pool.release(conn)

    async def ping(self):
        """Liveness probe on a freshly acquired connection."""
        async with self.acquire() as conn:
            await conn.ping(reconnect=False)

    async def run(self, conn, statement: str, params: Optional[List[Any]] = None) -> DriverOutcome:
        """Execute one parameterized statement on ``conn``.

        Raises:
            DriverError: the server or driver rejected the statement
        """
        async with conn.cursor(aiomysql.DictCursor) as cursor:
            try:
                if params:
                    await cursor.execute(to_driver_placeholders(statement), params)
                else:
                    await cursor.execute(statement)
            except pymysql.err.MySQLError as e:
                message, code, state = driver_error_details(e)
                raise DriverError(message, code=code, state=state) from e
            except (TypeError, ValueError) as e:
                # Placeholder count does not match the bound parameters
                raise DriverError(f"Parameter binding failed: {e}") from e
            description = cursor.description
            rows = await cursor.fetchall() if description is not None else None
            return DriverOutcome(
                rows=list(rows) if rows is not None else None,
                description=list(description) if description is not None else None,
                rowcount=cursor.rowcount,
                lastrowid=cursor.lastrowid
            )

    async def close(self):
        """Close connection pool."""
        if self._pool is not None:
            pool, self._pool = self._pool, None
            pool.close()
            await pool.wait_closed()
            logger.info(f"MySQL connection pool closed for {self.descriptor.masked()}")
