"""Tests for the database migration system."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest


class TestMigrationSystem:

    @pytest.fixture
    def mock_connection(self):
        """Connection whose version query reports ``conn.version``."""
        conn = MagicMock()
        conn.version = 0
        cursor = MagicMock()
        cursor.fetchone = AsyncMock(side_effect=lambda: (conn.version,))
        conn.execute = AsyncMock(return_value=cursor)

        @asynccontextmanager
        async def transaction():
            yield conn

        conn.transaction = transaction
        return conn

    @pytest.fixture
    def mock_get_connection(self, mock_connection):
        @asynccontextmanager
        async def fake(autocommit=True):
            yield mock_connection

        return fake

    @pytest.mark.asyncio
    async def test_get_current_version_creates_table(self, mock_get_connection, mock_connection):
        with patch("comit.db.migrations._get_connection", mock_get_connection):
            from comit.db.migrations import get_current_version

            version = await get_current_version()

        create_call = mock_connection.execute.call_args_list[0]
        assert "CREATE TABLE IF NOT EXISTS schema_migrations" in create_call[0][0]
        assert version == 0

    @pytest.mark.asyncio
    async def test_get_current_version_returns_max(self, mock_get_connection, mock_connection):
        mock_connection.version = 5
        with patch("comit.db.migrations._get_connection", mock_get_connection):
            from comit.db.migrations import get_current_version

            assert await get_current_version() == 5

    @pytest.mark.asyncio
    async def test_apply_migration_skips_if_already_applied(self, mock_get_connection, mock_connection):
        mock_connection.version = 5
        with patch("comit.db.migrations._get_connection", mock_get_connection):
            from comit.db.migrations import apply_migration

            assert await apply_migration(3, "SELECT 1;", "test") is False

    @pytest.mark.asyncio
    async def test_apply_migration_records_version(self, mock_get_connection, mock_connection):
        mock_connection.version = 2
        with patch("comit.db.migrations._get_connection", mock_get_connection):
            from comit.db.migrations import apply_migration

            assert await apply_migration(3, "CREATE TABLE test (id INT);", "test migration") is True

        statements = [c[0][0] for c in mock_connection.execute.call_args_list]
        assert "CREATE TABLE test (id INT);" in statements
        insert = mock_connection.execute.call_args_list[-1]
        assert "INSERT INTO schema_migrations" in insert[0][0]
        assert insert[0][1] == (3, "test migration")

    def test_initial_migration_is_listed(self):
        from comit.db.migrations import list_migrations

        migrations = list_migrations()
        assert migrations[0]["version"] == 1
        assert migrations[0]["description"] == "initial"
        sql = migrations[0]["path"].read_text()
        assert "comit_availabilities" in sql
        assert list_migrations(after=1) == []
