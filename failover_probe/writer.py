"""
Write-retry-and-reconnect loop.

One call to `WriteRetryLoop.write()` is one logical write: the same record is
attempted until it succeeds or the retry budget is exhausted. Failed attempts
sleep a fixed backoff before retrying. A read-only transaction error means the
session now points at a non-writable endpoint, so the connection is rebuilt
before the next attempt; every other database error is retried on the same
handle.

When a failure streak ends in success, the elapsed time since the first failed
attempt is logged once as the observed downtime.

Retries are driven by tenacity (`Retrying` with a fixed wait); exhausting the
budget raises WriteAbortedError, which ends the run.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

import psycopg
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from failover_probe.domain.models import Record, RunConfig
from failover_probe.errors import ErrorKind, WriteAbortedError, classify_write_error
from failover_probe.infrastructure.connection import ConnectionManager
from failover_probe.infrastructure.schema import TABLE_NAME
from failover_probe.utils.logging import get_logger

log = get_logger(__name__)

INSERT_SQL = f"INSERT INTO {TABLE_NAME} (description, status) VALUES (%s, %s)"


@dataclass(frozen=True)
class WriteOutcome:
    """Result of a logical write that eventually succeeded."""

    record: Record
    attempts: int
    downtime_ms: Optional[int] = None

    @property
    def recovered(self) -> bool:
        return self.downtime_ms is not None


@dataclass
class RetryState:
    """Per-write failure streak bookkeeping."""

    retry_count: int = 1
    last_failure_at: Optional[float] = None


class WriteRetryLoop:
    """
    Insert records through the managed connection, retrying until success.

    Parameters
    ----------
    connections : ConnectionManager
        Owner of the database handle; reset on read-only errors.
    max_retry : int
        Attempts allowed per logical write (including the first one).
    delay_retry : float
        Fixed backoff between attempts, in seconds.
    sleep, clock : callable, optional
        Injected for tests; `clock` must be monotonic and return seconds.
    """

    def __init__(
        self,
        connections: ConnectionManager,
        max_retry: int,
        delay_retry: float,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_retry < 1:
            raise ValueError("max_retry must be >= 1")
        self._connections = connections
        self.max_retry = max_retry
        self.delay_retry = delay_retry
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_config(
        cls, connections: ConnectionManager, config: RunConfig, **kwargs
    ) -> "WriteRetryLoop":
        return cls(connections, config.max_retry, config.delay_retry, **kwargs)

    def write(self, record: Record) -> WriteOutcome:
        """
        Perform one logical write.

        Raises
        ------
        WriteAbortedError
            If `max_retry` consecutive attempts failed.
        DatabaseUnavailableError
            If the connection could not be rebuilt after a read-only error.
        """
        state = RetryState()
        retrying = Retrying(
            stop=stop_after_attempt(self.max_retry),
            wait=wait_fixed(self.delay_retry),
            retry=retry_if_exception_type(psycopg.Error),
            after=lambda rs: self._record_failure(rs, state),
            before_sleep=lambda rs: self._before_retry(rs, record),
            sleep=self._sleep,
            reraise=True,
        )

        try:
            for attempt in retrying:
                state.retry_count = attempt.retry_state.attempt_number
                with attempt:
                    self._insert(record)
        except psycopg.Error as exc:
            log.error(
                f"Failed to insert data: {record}. Error: [{_describe(exc)}]",
                extra={"record": record.description, "attempts": state.retry_count},
            )
            raise WriteAbortedError(record, state.retry_count, exc) from exc

        downtime_ms = None
        if state.retry_count > 1 and state.last_failure_at is not None:
            downtime_ms = int((self._clock() - state.last_failure_at) * 1000)
            log.info(
                f"DownTime: {downtime_ms}ms",
                extra={"downtime_ms": downtime_ms, "attempts": state.retry_count},
            )
        log.info(f"Insert: {record} success", extra={"record": record.description})
        return WriteOutcome(record=record, attempts=state.retry_count, downtime_ms=downtime_ms)

    def _insert(self, record: Record) -> None:
        with self._connections.connection.cursor() as cur:
            cur.execute(INSERT_SQL, (record.description, record.status))

    def _record_failure(self, retry_state: RetryCallState, state: RetryState) -> None:
        if retry_state.attempt_number == 1:
            state.last_failure_at = self._clock()

    def _before_retry(self, retry_state: RetryCallState, record: Record) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        kind = classify_write_error(exc) if exc is not None else ErrorKind.TRANSIENT
        log.warning(
            f"Failed to insert: {record}. Error: [{_describe(exc)}]. "
            f"Retrying ({retry_state.attempt_number}/{self.max_retry})...",
            extra={
                "record": record.description,
                "attempt": retry_state.attempt_number,
                "max_retry": self.max_retry,
                "error_kind": kind.value,
            },
        )
        if kind is ErrorKind.READ_ONLY:
            self._connections.reset()


def _describe(exc: Optional[BaseException]) -> str:
    return " ".join(str(exc).split()) if exc is not None else ""


__all__ = ["INSERT_SQL", "RetryState", "WriteOutcome", "WriteRetryLoop"]
