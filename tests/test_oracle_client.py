"""
Oracle pool management: test_oracle_client.py

``oracledb.create_pool`` is replaced with a factory returning a FakePool so
no database is needed.

  - init_pool forwards DSN, credentials and pool bounds
  - init_pool twice without close_pool → IngestionError
  - create_pool failure → IngestionError, no pool left behind
  - get_pool before init_pool → IngestionError
  - close_pool closes the pool and is idempotent
  - acquire releases the connection on success and on exception
  - acquire failure → IngestionError
  - connect applies session settings; failures close the connection
"""

from __future__ import annotations

import oracledb
import pytest

from csvload.configs.exceptions import IngestionError
from csvload.discovery import oracle_client
from tests.fixtures.oracle_mocks import FakeConnection, FakeDatabase, FakePool


@pytest.fixture
def created(monkeypatch):
    """Patch create_pool; yields the list of (kwargs, pool) it produced."""
    calls: list[tuple[dict, FakePool]] = []

    def fake_create_pool(**kwargs):
        pool = FakePool()
        calls.append((kwargs, pool))
        return pool

    monkeypatch.setattr(oracle_client.oracledb, "create_pool", fake_create_pool)
    yield calls
    oracle_client.close_pool()


class TestPoolLifecycle:
    def test_init_pool_forwards_settings(self, created):
        pool = oracle_client.init_pool("db:1521/svc", "scott", "tiger", min_size=2, max_size=8)
        kwargs, made = created[0]
        assert pool is made
        assert kwargs["dsn"] == "db:1521/svc"
        assert kwargs["user"] == "scott"
        assert kwargs["password"] == "tiger"
        assert kwargs["min"] == 2
        assert kwargs["max"] == 8
        assert kwargs["session_callback"] is oracle_client._apply_session
        assert oracle_client.get_pool() is pool

    def test_double_init_rejected(self, created):
        oracle_client.init_pool("db", "u", "p")
        with pytest.raises(IngestionError, match="already initialised"):
            oracle_client.init_pool("db", "u", "p")
        assert len(created) == 1

    def test_create_failure(self, monkeypatch):
        def broken(**kwargs):
            raise oracledb.DatabaseError("ORA-01017: invalid username/password")

        monkeypatch.setattr(oracle_client.oracledb, "create_pool", broken)
        with pytest.raises(IngestionError, match="ORA-01017"):
            oracle_client.init_pool("db", "u", "p")
        with pytest.raises(IngestionError):
            oracle_client.get_pool()

    def test_get_pool_before_init(self):
        with pytest.raises(IngestionError, match="not initialised"):
            oracle_client.get_pool()

    def test_close_pool(self, created):
        pool = oracle_client.init_pool("db", "u", "p")
        oracle_client.close_pool()
        assert pool.closed is True
        oracle_client.close_pool()
        with pytest.raises(IngestionError):
            oracle_client.get_pool()

    def test_reinit_after_close(self, created):
        oracle_client.init_pool("db", "u", "p")
        oracle_client.close_pool()
        oracle_client.init_pool("db", "u", "p")
        assert len(created) == 2


class TestAcquire:
    def test_releases_on_success(self):
        pool = FakePool()
        with oracle_client.acquire(pool) as conn:
            assert conn is pool.last_connection
        assert pool.released == [conn]

    def test_releases_on_exception(self):
        pool = FakePool()
        with pytest.raises(ValueError):
            with oracle_client.acquire(pool):
                raise ValueError("inside")
        assert pool.outstanding == 0

    def test_defaults_to_process_pool(self, created):
        pool = oracle_client.init_pool("db", "u", "p")
        with oracle_client.acquire():
            pass
        assert len(pool.connections) == 1
        assert pool.outstanding == 0

    def test_acquire_failure(self):
        pool = FakePool(fail_acquire="ORA-12541: TNS:no listener")
        with pytest.raises(IngestionError, match="Failed to acquire"):
            with oracle_client.acquire(pool):
                pass


class TestConnect:
    def test_session_settings_applied(self, monkeypatch):
        db = FakeDatabase()
        conn = FakeConnection(db)
        monkeypatch.setattr(oracle_client.oracledb, "connect", lambda **kwargs: conn)

        assert oracle_client.connect("db", "u", "p") is conn
        assert db.statements == oracle_client._SESSION_SQL
        assert conn.cursor_obj.closed is True

    def test_session_settings_skipped(self, monkeypatch):
        db = FakeDatabase()
        monkeypatch.setattr(
            oracle_client.oracledb, "connect", lambda **kwargs: FakeConnection(db)
        )
        oracle_client.connect("db", "u", "p", apply_session_settings=False)
        assert db.statements == []

    def test_connect_failure(self, monkeypatch):
        def broken(**kwargs):
            raise oracledb.DatabaseError("ORA-12154: could not resolve the connect identifier")

        monkeypatch.setattr(oracle_client.oracledb, "connect", broken)
        with pytest.raises(IngestionError, match="ORA-12154"):
            oracle_client.connect("nowhere", "u", "p")

    def test_session_failure_closes_connection(self, monkeypatch):
        db = FakeDatabase(fail_on_sql={"ALTER SESSION": "ORA-02248: invalid option"})
        conn = FakeConnection(db)
        monkeypatch.setattr(oracle_client.oracledb, "connect", lambda **kwargs: conn)

        with pytest.raises(IngestionError, match="session settings"):
            oracle_client.connect("db", "u", "p")
        assert conn.closed is True
