"""Connection gateway: the single owner of the active MySQL pool.

The gateway holds at most one session. Connecting to the target that is
already active is a no-op; connecting anywhere else tears the previous pool
down first. Statements are never validated here; callers run them through
``tools.validators.StatementValidator`` before calling ``execute``.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional, Sequence, Union

import pymysql

from core.config import PoolConfig
from core.exceptions import DescriptorParseError, DriverError, NotConnectedError
from database.connectors import MySQLConnector, driver_error_details
from database.descriptor import ConnectionDescriptor, parse_descriptor
from database.normalizer import classify_operation, normalize
from database.results import (
    ConnectResult,
    ConnectionStatus,
    ErrorKind,
    ExecutionResult,
    TableInfo,
    TableInfoResult,
)

logger = logging.getLogger(__name__)

ConnectorFactory = Callable[[ConnectionDescriptor, PoolConfig], MySQLConnector]


class GatewaySession:
    """Pool handle plus the descriptor it was built from."""

    def __init__(self, connector: MySQLConnector, descriptor: ConnectionDescriptor):
        self.connector = connector
        self.descriptor = descriptor
        self.connected = True


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


class ConnectionGateway:
    """Connect-or-reuse, execute and describe against one MySQL target at a time.

    Hold one gateway per target when several targets must stay open
    concurrently; a single gateway always replaces its pool on a new target.
    """

    def __init__(
        self,
        pool_config: Optional[PoolConfig] = None,
        connector_factory: ConnectorFactory = MySQLConnector
    ):
        self.pool_config = pool_config or PoolConfig.from_env()
        self._connector_factory = connector_factory
        self._session: Optional[GatewaySession] = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._session is not None and self._session.connected

    @property
    def active_descriptor(self) -> Optional[ConnectionDescriptor]:
        return self._session.descriptor if self.is_connected else None

    async def connect(self, descriptor: Union[str, ConnectionDescriptor]) -> ConnectResult:
        """Connect to ``descriptor``, reusing the active pool when the target matches."""
        if not isinstance(descriptor, ConnectionDescriptor):
            try:
                descriptor = parse_descriptor(descriptor)
            except DescriptorParseError as e:
                return ConnectResult.failure(ErrorKind.PARSE, e.message)

        async with self._lock:
            if self.is_connected and self._session.descriptor.same_target(descriptor):
                logger.debug(f"Reusing pool for {descriptor.masked()}")
                return ConnectResult(
                    success=True,
                    already_connected=True,
                    descriptor=descriptor.public_info(),
                    message="Already connected to the same database"
                )

            if self._session is not None:
                logger.info(
                    f"Switching target {self._session.descriptor.masked()} -> {descriptor.masked()}"
                )
                await self._release_session()

            connector = self._connector_factory(descriptor, self.pool_config)
            try:
                await connector.initialize_pool()
                await connector.ping()
            except Exception as e:
                logger.error(f"Database connection failed for {descriptor.masked()}: {e}")
                try:
                    await connector.close()
                except Exception as close_error:
                    logger.warning(f"Failed to close half-open pool: {close_error}")
                return ConnectResult.failure(ErrorKind.CONNECTION, str(e) or e.__class__.__name__)

            self._session = GatewaySession(connector, descriptor)
            logger.info(f"Database connected: {descriptor.masked()}")
            return ConnectResult(
                success=True,
                descriptor=descriptor.public_info(),
                message="Database connected"
            )

    async def execute(self, statement: str, params: Optional[Sequence[Any]] = None) -> ExecutionResult:
        """Run one parameterized statement on a pooled connection.

        Driver failures are reported, never retried.
        """
        operation_kind = classify_operation(statement)
        session = self._session
        if session is None or not session.connected:
            return ExecutionResult.failure(
                ErrorKind.NOT_CONNECTED, "Database is not connected", operation_kind
            )

        start = time.perf_counter()
        try:
            async with session.connector.acquire() as conn:
                start = time.perf_counter()
                outcome = await session.connector.run(conn, statement, list(params or []))
        except DriverError as e:
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            logger.error(f"SQL execution error [{e.code}]: {e.message}")
            return ExecutionResult.failure(
                ErrorKind.DRIVER, e.message, operation_kind,
                code=e.code, state=e.state, execution_time_ms=elapsed_ms
            )
        except pymysql.err.MySQLError as e:
            # Raised while the pool opens a replacement connection
            message, code, state = driver_error_details(e)
            logger.error(f"Failed to acquire a connection [{code}]: {message}")
            return ExecutionResult.failure(
                ErrorKind.CONNECTION, message, operation_kind, code=code, state=state
            )
        except NotConnectedError as e:
            return ExecutionResult.failure(ErrorKind.NOT_CONNECTED, e.message, operation_kind)
        except asyncio.TimeoutError:
            logger.error("Timed out waiting for a pooled connection")
            return ExecutionResult.failure(
                ErrorKind.CONNECTION, "Timed out waiting for a pooled connection", operation_kind
            )

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        return normalize(outcome, elapsed_ms, operation_kind)

    async def describe_schema(self) -> TableInfoResult:
        """List tables with their structure.

        A table whose structure query fails is left out; the call still
        succeeds as long as the table listing itself succeeded.
        """
        listing = await self.execute("SHOW TABLES")
        if not listing.success:
            return TableInfoResult(success=False, error=listing.error)

        tables = []
        for row in listing.rows:
            if not row:
                continue
            table_name = str(next(iter(row.values())))
            structure = await self.execute(f"DESCRIBE {quote_identifier(table_name)}")
            if structure.success:
                tables.append(TableInfo(name=table_name, columns=structure.rows))
            else:
                logger.warning(f"Skipping table {table_name}: {structure.error.message}")

        return TableInfoResult(success=True, tables=tables)

    def status(self) -> ConnectionStatus:
        descriptor = self.active_descriptor
        if descriptor is None:
            return ConnectionStatus(connected=False)
        return ConnectionStatus(connected=True, **descriptor.public_info())

    async def close(self):
        """Release the pool if present; always ends disconnected."""
        async with self._lock:
            await self._release_session()

    async def _release_session(self):
        session, self._session = self._session, None
        if session is None:
            return
        session.connected = False
        try:
            await session.connector.close()
        except Exception as e:
            logger.warning(f"Failed to close pool for {session.descriptor.masked()}: {e}")
        else:
            logger.info(f"Database disconnected: {session.descriptor.masked()}")
