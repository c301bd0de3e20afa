"""Tests for the asyncpg connection factory."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from neo_dbpool.features.pool.utils.connection_factory import AsyncpgConnectionFactory

CONNECT = "neo_dbpool.features.pool.utils.connection_factory.asyncpg.connect"


@pytest.fixture
def asyncpg_connection():
    conn = MagicMock()
    conn.fetchval = AsyncMock(return_value=1)
    conn.close = AsyncMock()
    return conn


class TestAsyncpgConnectionFactory:

    @pytest.mark.asyncio
    async def test_create_runs_liveness_query(self, asyncpg_connection):
        factory = AsyncpgConnectionFactory({"command_timeout": 10})

        with patch(CONNECT, AsyncMock(return_value=asyncpg_connection)) as connect:
            conn = await factory.create("postgresql://db/app", timeout=1.0)

        assert conn is asyncpg_connection
        connect.assert_awaited_once_with(dsn="postgresql://db/app", command_timeout=10)
        asyncpg_connection.fetchval.assert_awaited_once_with("SELECT 1")

    @pytest.mark.asyncio
    async def test_connect_failure_raises_connection_error(self):
        factory = AsyncpgConnectionFactory()

        with patch(CONNECT, AsyncMock(side_effect=OSError("refused"))):
            with pytest.raises(ConnectionError, match="Connection failed"):
                await factory.create("postgresql://app:secret@db/app", timeout=1.0)

    @pytest.mark.asyncio
    async def test_failed_liveness_closes_connection(self, asyncpg_connection):
        asyncpg_connection.fetchval.side_effect = OSError("reset")
        factory = AsyncpgConnectionFactory()

        with patch(CONNECT, AsyncMock(return_value=asyncpg_connection)):
            with pytest.raises(ConnectionError, match="Liveness check failed"):
                await factory.create("postgresql://db/app", timeout=1.0)

        asyncpg_connection.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_terminates_when_graceful_close_fails(self, asyncpg_connection):
        asyncpg_connection.close.side_effect = OSError("broken pipe")

        await AsyncpgConnectionFactory().close(asyncpg_connection)

        asyncpg_connection.terminate.assert_called_once()
