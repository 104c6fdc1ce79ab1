"""
Error taxonomy for the failover probe.

Fatal errors end the run and are propagated to the CLI boundary, which decides
whether to terminate the process. Transient write errors never leave the retry
loop; they are classified here so the loop knows whether the connection must
be rebuilt before the next attempt.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from failover_probe.domain.models import Record

# SQLSTATE for read_only_sql_transaction: the session is attached to a standby.
READ_ONLY_SQLSTATE = "25006"


class ProbeError(Exception):
    """Base error for the failover probe."""


class FatalProbeError(ProbeError):
    """Terminal condition: the current run cannot continue."""


class ConfigurationError(FatalProbeError):
    """Configuration file is unreadable or invalid."""


class DatabaseUnavailableError(FatalProbeError):
    """The database could not be reached or failed the liveness check."""


class SchemaBootstrapError(FatalProbeError):
    """The target table could not be created."""


class WriteAbortedError(FatalProbeError):
    """A logical write exhausted its retry budget."""

    def __init__(self, record: "Record", attempts: int, last_error: BaseException) -> None:
        super().__init__(
            f"Failed to insert data: {record.description}. "
            f"Error: [{last_error}] after {attempts} attempt(s)"
        )
        self.record = record
        self.attempts = attempts
        self.last_error = last_error


class ErrorKind(str, Enum):
    """How the retry loop should react to a failed write."""

    READ_ONLY = "read_only"
    TRANSIENT = "transient"


def classify_write_error(exc: BaseException) -> ErrorKind:
    """
    Classify a failed write by the SQLSTATE reported by the server.

    Only the read-only transaction condition (the classic symptom of a session
    that ended up on a demoted primary or a replica) is treated as poisoning
    the connection. Everything else is retried on the same handle.
    """
    sqlstate: Optional[str] = getattr(exc, "sqlstate", None)
    if sqlstate == READ_ONLY_SQLSTATE:
        return ErrorKind.READ_ONLY
    return ErrorKind.TRANSIENT


__all__ = [
    "READ_ONLY_SQLSTATE",
    "ProbeError",
    "FatalProbeError",
    "ConfigurationError",
    "DatabaseUnavailableError",
    "SchemaBootstrapError",
    "WriteAbortedError",
    "ErrorKind",
    "classify_write_error",
]
