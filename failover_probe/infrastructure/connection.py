"""
Single-connection management for the failover probe.

The ConnectionManager exclusively owns the one outbound PostgreSQL session. The
handle is either usable or torn down (None); callers never see a half-closed
connection. `reset()` replaces the handle wholesale and is reserved for the
read-only transaction condition detected by the write loop.

Initial connects and resets retry transient connection errors using tenacity.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Optional

import psycopg
from psycopg import Connection
from psycopg.conninfo import conninfo_to_dict, make_conninfo
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from failover_probe.config import Settings, get_settings
from failover_probe.errors import DatabaseUnavailableError
from failover_probe.utils.logging import get_logger

log = get_logger(__name__)

Connector = Callable[..., Connection]


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings; an explicit DB_DSN wins."""
    settings = settings or get_settings()
    if settings.db_dsn:
        return settings.db_dsn
    return make_conninfo(
        host=settings.db_host,
        port=settings.db_port,
        user=settings.db_user,
        password=settings.db_password,
        dbname=settings.db_name,
    )


def mask_dsn(dsn: str) -> str:
    """Return the DSN in key=value form with the password hidden."""
    try:
        params = conninfo_to_dict(dsn)
    except psycopg.ProgrammingError:
        return "<unparseable dsn>"
    if params.get("password"):
        params["password"] = "***"
    return make_conninfo(**params)


class ConnectionManager:
    """
    Owner of the single database handle.

    Parameters
    ----------
    dsn : str
        libpq connection string or URL.
    connect_timeout : int
        Seconds libpq waits for each connection attempt.
    connect_attempts : int
        Attempts made by `connect()` before giving up.
    connector : callable, optional
        Factory with the signature of `psycopg.connect` (injected in tests).
    sleep : callable, optional
        Sleep function used between connect attempts.
    """

    def __init__(
        self,
        dsn: str,
        connect_timeout: int = 5,
        connect_attempts: int = 3,
        connector: Optional[Connector] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._dsn = dsn
        self._connect_timeout = connect_timeout
        self._connect_attempts = connect_attempts
        self._connector = connector or psycopg.connect
        self._sleep = sleep
        self._conn: Optional[Connection] = None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "ConnectionManager":
        return cls(
            build_dsn(settings),
            connect_timeout=settings.db_connect_timeout,
            connect_attempts=settings.db_connect_attempts,
            **kwargs,
        )

    @property
    def healthy(self) -> bool:
        """Whether a usable handle is currently held."""
        return self._conn is not None and not self._conn.closed

    @property
    def connection(self) -> Connection:
        return self.acquire()

    def acquire(self) -> Connection:
        """
        Return the live handle.

        If the driver already closed the session, the handle is dropped and a
        single reopen is attempted. psycopg errors from that reopen propagate
        unchanged so the write loop treats them as an ordinary failed attempt.
        """
        if self._conn is not None and not self._conn.closed:
            return self._conn
        if self._conn is not None:
            log.warning("Connection closed by the server; reopening")
            self._conn = None
        self._conn = self._open()
        return self._conn

    def connect(self) -> Connection:
        """
        Establish a new connection and verify it with a liveness check.

        Raises
        ------
        DatabaseUnavailableError
            If no connection could be established within `connect_attempts`.
        """
        if self._conn is not None:
            self._teardown()

        retrying = Retrying(
            stop=stop_after_attempt(self._connect_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
            sleep=self._sleep,
            reraise=True,
        )
        try:
            self._conn = retrying(self._open)
        except psycopg.Error as exc:
            raise DatabaseUnavailableError(f"Cannot connect to database: {exc}") from exc

        log.info("Successfully connected to the database", extra={"dsn": mask_dsn(self._dsn)})
        return self._conn

    def reset(self) -> Connection:
        """Tear down the current handle (if any) and connect again."""
        log.warning("Resetting database connection")
        self._teardown()
        return self.connect()

    def close(self) -> None:
        self._teardown()

    def _open(self) -> Connection:
        conn = self._connector(
            self._dsn, autocommit=True, connect_timeout=self._connect_timeout
        )
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                cur.fetchone()
        except psycopg.Error:
            conn.close()
            raise
        return conn

    def _teardown(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            conn.close()
        except psycopg.Error as exc:
            log.debug("Ignoring error while closing connection", extra={"error": str(exc)})

    def __enter__(self) -> "ConnectionManager":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = [
    "ConnectionManager",
    "build_dsn",
    "mask_dsn",
]
