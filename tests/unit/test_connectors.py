"""
MySQL connector tests

aiomysql is patched out; the tests cover placeholder rewriting, driver error
translation and pool lifecycle calls.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pymysql
import pytest

from core.config import PoolConfig
from core.exceptions import DatabaseConnectionError, DriverError, NotConnectedError
from database.connectors import MySQLConnector, driver_error_details, to_driver_placeholders
from database.descriptor import parse_descriptor


class TestPlaceholders:

    def test_question_marks_rewritten(self):
        assert to_driver_placeholders("SELECT * FROM t WHERE a = ? AND b = ?") == \
            "SELECT * FROM t WHERE a = %s AND b = %s"

    def test_quoted_question_mark_kept(self):
        assert to_driver_placeholders("SELECT '?' AS q, a FROM t WHERE id = ?") == \
            "SELECT '?' AS q, a FROM t WHERE id = %s"

    def test_percent_doubled_when_rewriting(self):
        assert to_driver_placeholders("SELECT * FROM t WHERE name LIKE 'a%' AND id = ?") == \
            "SELECT * FROM t WHERE name LIKE 'a%%' AND id = %s"

    def test_backslash_escaped_quote(self):
        assert to_driver_placeholders("SELECT * FROM t WHERE a = 'it\\'s' AND b = ?") == \
            "SELECT * FROM t WHERE a = 'it\\'s' AND b = %s"

    def test_backtick_has_no_escapes(self):
        assert to_driver_placeholders("SELECT `a\\` FROM t WHERE id = ?") == \
            "SELECT `a\\` FROM t WHERE id = %s"

    def test_driver_style_untouched(self):
        statement = "SELECT * FROM t WHERE name LIKE %s"
        assert to_driver_placeholders(statement) == statement


class TestDriverErrorDetails:

    def test_programming_error(self):
        message, code, state = driver_error_details(pymysql.err.ProgrammingError(1064, "You have an error"))
        assert message == "You have an error"
        assert code == 1064
        assert state is None

    def test_bare_error(self):
        message, code, _ = driver_error_details(pymysql.err.InterfaceError())
        assert message == "InterfaceError"
        assert code is None


@pytest.fixture
def connector():
    descriptor = parse_descriptor("mysql://app:pw@db.local:3307/shop")
    return MySQLConnector(descriptor, PoolConfig(pool_size=3, min_size=1, acquire_timeout=1.0))


def mock_connection(cursor):
    cursor_cm = MagicMock()
    cursor_cm.__aenter__ = AsyncMock(return_value=cursor)
    cursor_cm.__aexit__ = AsyncMock(return_value=False)
    conn = MagicMock()
    conn.cursor.return_value = cursor_cm
    return conn


class TestMySQLConnector:

    @pytest.mark.asyncio
    async def test_initialize_pool_arguments(self, connector):
        with patch("database.connectors.aiomysql.create_pool", new=AsyncMock()) as create_pool:
            await connector.initialize_pool()

        kwargs = create_pool.call_args.kwargs
        assert kwargs["host"] == "db.local"
        assert kwargs["port"] == 3307
        assert kwargs["password"] == "pw"
        assert kwargs["db"] == "shop"
        assert kwargs["maxsize"] == 3
        assert kwargs["autocommit"] is True
        assert "client_flag" not in kwargs

    @pytest.mark.asyncio
    async def test_initialize_pool_failure(self, connector):
        error = pymysql.err.OperationalError(1045, "Access denied for user 'app'")
        with patch("database.connectors.aiomysql.create_pool", new=AsyncMock(side_effect=error)):
            with pytest.raises(DatabaseConnectionError) as exc_info:
                await connector.initialize_pool()

        assert exc_info.value.message == "Access denied for user 'app'"
        assert "pw" not in str(exc_info.value.details)

    @pytest.mark.asyncio
    async def test_acquire_without_pool(self, connector):
        with pytest.raises(NotConnectedError):
            async with connector.acquire():
                pass

    @pytest.mark.asyncio
    async def test_acquire_releases_on_error(self, connector):
        pool = MagicMock()
        pool.acquire = AsyncMock(return_value="conn")
        connector._pool = pool

        with pytest.raises(ValueError):
            async with connector.acquire():
                raise ValueError("boom")

        pool.release.assert_called_once_with("conn")

    @pytest.mark.asyncio
    async def test_run_select(self, connector):
        cursor = MagicMock()
        cursor.execute = AsyncMock()
        cursor.fetchall = AsyncMock(return_value=[{"id": 1}])
        cursor.description = (("id", 3, None, 11, 11, 0, False),)
        cursor.rowcount = 1
        cursor.lastrowid = 0

        outcome = await connector.run(mock_connection(cursor), "SELECT id FROM t WHERE id = ?", [1])

        cursor.execute.assert_awaited_once_with("SELECT id FROM t WHERE id = %s", [1])
        assert outcome.rows == [{"id": 1}]
        assert outcome.description[0][0] == "id"

    @pytest.mark.asyncio
    async def test_run_write_without_params(self, connector):
        cursor = MagicMock()
        cursor.execute = AsyncMock()
        cursor.fetchall = AsyncMock()
        cursor.description = None
        cursor.rowcount = 2
        cursor.lastrowid = 10

        outcome = await connector.run(mock_connection(cursor), "UPDATE t SET a = 1", [])

        cursor.execute.assert_awaited_once_with("UPDATE t SET a = 1")
        cursor.fetchall.assert_not_awaited()
        assert outcome.rows is None
        assert outcome.rowcount == 2
        assert outcome.lastrowid == 10

    @pytest.mark.asyncio
    async def test_run_translates_driver_error(self, connector):
        cursor = MagicMock()
        cursor.execute = AsyncMock(side_effect=pymysql.err.ProgrammingError(1146, "Table 'shop.x' doesn't exist"))

        with pytest.raises(DriverError) as exc_info:
            await connector.run(mock_connection(cursor), "SELECT * FROM x", [])

        assert exc_info.value.code == 1146
        assert "doesn't exist" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_close(self, connector):
        pool = MagicMock()
        pool.wait_closed = AsyncMock()
        connector._pool = pool

        await connector.close()
        await connector.close()

        pool.close.assert_called_once()
        pool.wait_closed.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_run_translates_binding_error(self, connector):
        cursor = MagicMock()
        cursor.execute = AsyncMock(side_effect=TypeError("not all arguments converted during string formatting"))

        with pytest.raises(DriverError) as exc_info:
            await connector.run(mock_connection(cursor), "SELECT 1", [1])

        assert exc_info.value.code is None
        assert "not all arguments converted" in exc_info.value.message
