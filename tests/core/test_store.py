"""Tests for flowspine.core.store — SqlAlchemyStore against SQLite."""

import pytest
from sqlalchemy import text

from flowspine.core.errors import QueryError
from flowspine.core.store import SqlAlchemyStore


@pytest.fixture
def store(sqlite_url):
    s = SqlAlchemyStore(sqlite_url)
    with s.engine.begin() as conn:
        conn.execute(text("CREATE TABLE flows (solver TEXT, total_volume REAL)"))
        conn.execute(text("INSERT INTO flows VALUES ('a', 1.5), ('b', 2.0), ('a', 3.0)"))
    yield s
    s.close()


class TestSqlAlchemyStore:
    def test_execute_returns_dicts(self, store):
        rows = store.execute("SELECT solver, SUM(total_volume) AS value FROM flows GROUP BY solver ORDER BY solver")
        assert rows == [{"solver": "a", "value": 4.5}, {"solver": "b", "value": 2.0}]

    def test_execute_binds_params(self, store):
        rows = store.execute("SELECT total_volume FROM flows WHERE solver = :s", {"s": "b"})
        assert rows == [{"total_volume": 2.0}]

    def test_bad_sql_raises_query_error(self, store):
        with pytest.raises(QueryError) as exc_info:
            store.execute("SELECT nope FROM missing_table")
        assert "missing_table" in exc_info.value.context.query

    def test_missing_table_is_retryable(self, store):
        """SQLite reports missing tables as OperationalError."""
        with pytest.raises(QueryError) as exc_info:
            store.execute("SELECT * FROM missing_table")
        assert exc_info.value.retryable is True

    def test_ping(self, store):
        assert store.ping() is True
