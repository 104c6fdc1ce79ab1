"""
Failover Probe - synthetic write load and failover downtime measurement for PostgreSQL.

This package continuously inserts synthetic rows and measures how long writes
are unavailable while a managed database fails over:

- A single managed connection that is rebuilt when it lands on a read-only node
- A write loop that retries the same record with a fixed backoff
- Burst and rate-limited run modes with start/end timing
- Downtime reporting once per recovered failure streak
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from failover_probe.config import Settings, get_settings, load_settings
from failover_probe.controller import RunController, RunMode, RunSummary
from failover_probe.domain.models import Record, RunConfig
from failover_probe.errors import (
    ConfigurationError,
    DatabaseUnavailableError,
    ErrorKind,
    FatalProbeError,
    ProbeError,
    SchemaBootstrapError,
    WriteAbortedError,
    classify_write_error,
)
from failover_probe.generator import RecordGenerator
from failover_probe.infrastructure.connection import ConnectionManager
from failover_probe.utils.logging import configure_logging, get_logger
from failover_probe.writer import WriteOutcome, WriteRetryLoop

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    "load_settings",
    # Domain
    "Record",
    "RunConfig",
    # Core
    "ConnectionManager",
    "RecordGenerator",
    "WriteRetryLoop",
    "WriteOutcome",
    "RunController",
    "RunMode",
    "RunSummary",
    # Errors
    "ProbeError",
    "FatalProbeError",
    "ConfigurationError",
    "DatabaseUnavailableError",
    "SchemaBootstrapError",
    "WriteAbortedError",
    "ErrorKind",
    "classify_write_error",
    # Logging
    "configure_logging",
    "get_logger",
]
