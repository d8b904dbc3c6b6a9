"""Tests for Database class (unit-level, the connection pool is mocked)."""

from unittest.mock import MagicMock, call, patch

import pytest

from age_bulk.database import POOL_NAME, SESSION_SETUP, Database, _prepare_session
from age_bulk.exceptions import GraphNotFoundError


@pytest.fixture
def pool_cls():
    with patch("age_bulk.database.ConnectionPool") as pool_cls:
        yield pool_cls


@pytest.fixture
def conn(pool_cls):
    conn = MagicMock()
    pool_cls.return_value.connection.return_value.__enter__.return_value = conn
    return conn


class TestDatabaseInit:
    def test_pool_defaults(self, pool_cls):
        Database("postgresql://localhost/agedb")
        args, kwargs = pool_cls.call_args
        assert args == ("postgresql://localhost/agedb",)
        assert kwargs["min_size"] == 1
        assert kwargs["max_size"] == 4
        assert kwargs["configure"] is _prepare_session
        assert kwargs["name"] == POOL_NAME
        assert kwargs["open"] is True

    def test_connections_are_checked(self, pool_cls):
        Database("postgresql://localhost/agedb")
        assert pool_cls.call_args.kwargs["check"] is pool_cls.check_connection

    def test_pool_size_override(self, pool_cls):
        Database("postgresql://localhost/agedb", max_size=16, timeout=5.0)
        assert pool_cls.call_args.kwargs["max_size"] == 16
        assert pool_cls.call_args.kwargs["timeout"] == 5.0

    def test_context_manager_closes_pool(self, pool_cls):
        with Database("postgresql://localhost/agedb") as db:
            assert db.pool is pool_cls.return_value
        pool_cls.return_value.close.assert_called_once()


class TestEnsureGraph:
    def test_creates_missing_graph(self, conn):
        conn.execute.return_value.fetchone.return_value = None
        assert Database("dsn").ensure_graph("icio") is True
        assert conn.execute.call_args_list == [
            call("SELECT 1 FROM ag_catalog.ag_graph WHERE name = %s", ("icio",)),
            call("SELECT create_graph(%s)", ("icio",)),
        ]

    def test_existing_graph(self, conn):
        conn.execute.return_value.fetchone.return_value = (1,)
        assert Database("dsn").ensure_graph("icio") is False
        assert conn.execute.call_count == 1

    def test_lookup_and_create_share_a_connection(self, pool_cls, conn):
        conn.execute.return_value.fetchone.return_value = None
        Database("dsn").ensure_graph("icio")
        pool_cls.return_value.connection.assert_called_once_with()

    def test_missing_graph_without_create(self, conn):
        conn.execute.return_value.fetchone.return_value = None
        with pytest.raises(GraphNotFoundError, match="icio"):
            Database("dsn").ensure_graph("icio", create=False)
        assert conn.execute.call_count == 1


class TestPrepareSession:
    def test_loads_age(self):
        conn = MagicMock()
        _prepare_session(conn)
        cur = conn.cursor.return_value.__enter__.return_value
        assert cur.execute.call_args_list == [call(statement) for statement in SESSION_SETUP]
        assert conn.autocommit is False

    def test_setup_statements(self):
        assert SESSION_SETUP == ("LOAD 'age'", 'SET search_path = ag_catalog, "$user", public')
