"""
Schema bootstrap for the probe's append-only target table.
"""

from __future__ import annotations

import psycopg

from failover_probe.errors import SchemaBootstrapError
from failover_probe.infrastructure.connection import ConnectionManager
from failover_probe.utils.logging import get_logger

log = get_logger(__name__)

TABLE_NAME = "busy_table"

CREATE_TABLE_SQL = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    id SERIAL PRIMARY KEY,
    description VARCHAR(255),
    status VARCHAR(50),
    time TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
);
"""


def ensure_schema(connections: ConnectionManager) -> None:
    """Create the target table if it does not exist yet."""
    try:
        with connections.connection.cursor() as cur:
            cur.execute(CREATE_TABLE_SQL)
    except psycopg.Error as exc:
        raise SchemaBootstrapError(f"Cannot create table {TABLE_NAME}: {exc}") from exc
    log.info(f"Table {TABLE_NAME} is ready", extra={"table": TABLE_NAME})


__all__ = ["CREATE_TABLE_SQL", "TABLE_NAME", "ensure_schema"]
