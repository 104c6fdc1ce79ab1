from __future__ import annotations

import psycopg
import pytest
from psycopg.conninfo import conninfo_to_dict

from failover_probe.config import Settings
from failover_probe.errors import DatabaseUnavailableError
from failover_probe.infrastructure.connection import ConnectionManager, build_dsn, mask_dsn
from tests.fakes import TEST_DSN, FakeClock, FakeDatabase


def _manager(fake_db: FakeDatabase, clock: FakeClock, attempts: int = 3) -> ConnectionManager:
    return ConnectionManager(
        TEST_DSN,
        connect_timeout=7,
        connect_attempts=attempts,
        connector=fake_db.connect,
        sleep=clock.sleep,
    )


def test_connect_opens_autocommit_session_and_pings(fake_db, clock) -> None:
    manager = _manager(fake_db, clock)

    conn = manager.connect()

    assert conn is fake_db.connections[0]
    assert manager.healthy is True
    assert fake_db.connect_kwargs == [{"dsn": TEST_DSN, "autocommit": True, "connect_timeout": 7}]
    assert fake_db.statements == ["SELECT 1"]


def test_connect_retries_transient_connection_errors(fake_db, clock) -> None:
    fake_db.connect_errors = [psycopg.OperationalError("connection refused"), None]
    manager = _manager(fake_db, clock)

    manager.connect()

    assert len(fake_db.connect_kwargs) == 2
    assert len(clock.sleeps) == 1
    assert manager.healthy is True


def test_connect_gives_up_with_fatal_error(fake_db, clock) -> None:
    fake_db.connect_errors = [psycopg.OperationalError("connection refused")] * 3
    manager = _manager(fake_db, clock)

    with pytest.raises(DatabaseUnavailableError, match="connection refused"):
        manager.connect()

    assert len(fake_db.connect_kwargs) == 3
    assert manager.healthy is False


def test_failed_liveness_check_is_fatal_and_closes_handle(fake_db, clock) -> None:
    fake_db.ping_error = psycopg.OperationalError("terminating connection")
    manager = _manager(fake_db, clock, attempts=1)

    with pytest.raises(DatabaseUnavailableError):
        manager.connect()

    assert fake_db.connections[0].closed is True
    assert manager.healthy is False


def test_reset_replaces_handle_wholesale(connections, fake_db) -> None:
    first = connections.connection

    second = connections.reset()

    assert first.closed is True
    assert second is not first
    assert connections.connection is second
    assert [c.closed for c in fake_db.connections] == [True, False]


def test_connect_twice_keeps_a_single_live_handle(connections, fake_db) -> None:
    connections.connect()

    assert [c.closed for c in fake_db.connections] == [True, False]


def test_acquire_reopens_handle_closed_by_server(connections, fake_db) -> None:
    fake_db.connections[0].closed = True

    conn = connections.acquire()

    assert conn is fake_db.connections[1]


def test_acquire_reopen_failure_surfaces_driver_error(connections, fake_db) -> None:
    fake_db.connections[0].closed = True
    fake_db.connect_errors = [psycopg.OperationalError("connection refused")]

    with pytest.raises(psycopg.OperationalError):
        connections.acquire()

    assert connections.healthy is False


def test_context_manager_connects_and_closes(fake_db, clock) -> None:
    with _manager(fake_db, clock) as manager:
        assert manager.healthy is True

    assert fake_db.connections[0].closed is True
    assert manager.healthy is False


def test_build_dsn_from_parts_and_override() -> None:
    settings = Settings(
        _env_file=None,
        db_host="db.internal",
        db_port=6543,
        db_user="writer",
        db_password="pw",
        db_name="busy",
    )
    assert conninfo_to_dict(build_dsn(settings)) == {
        "host": "db.internal",
        "port": "6543",
        "user": "writer",
        "password": "pw",
        "dbname": "busy",
    }

    override = settings.model_copy(update={"db_dsn": "host=primary dbname=busy"})
    assert build_dsn(override) == "host=primary dbname=busy"


@pytest.mark.parametrize("password", ["p@ss/w:rd", "with space", "quo'te\\slash", "a#b?c=d"])
def test_build_dsn_escapes_special_characters_in_password(password: str) -> None:
    settings = Settings(
        _env_file=None, db_host="db.internal", db_user="us@er", db_password=password
    )

    params = conninfo_to_dict(build_dsn(settings))

    assert params["host"] == "db.internal"
    assert params["dbname"] == "busy_db"
    assert params["user"] == "us@er"
    assert params["password"] == password


def test_mask_dsn_hides_password() -> None:
    masked = mask_dsn(TEST_DSN)

    assert "secret" not in masked
    assert "password=***" in masked
    assert "host=db.test" in masked
