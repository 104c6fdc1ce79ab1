"""
Infrastructure package for the failover probe.

Centralizes database connectivity concerns (the single managed connection and
schema bootstrap). Keep this layer focused on I/O and resource management,
decoupled from the write loop and run controller logic.
"""

from failover_probe.infrastructure.connection import ConnectionManager, build_dsn, mask_dsn
from failover_probe.infrastructure.schema import TABLE_NAME, ensure_schema

__all__ = [
    "ConnectionManager",
    "TABLE_NAME",
    "build_dsn",
    "ensure_schema",
    "mask_dsn",
]
