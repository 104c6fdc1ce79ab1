"""
Domain package for the failover probe.

Exports the data definitions shared by the generator, the write loop and the
run controller.
"""

from failover_probe.domain.models import IDLE_STATUS, Record, RunConfig

__all__ = [
    "IDLE_STATUS",
    "Record",
    "RunConfig",
]
