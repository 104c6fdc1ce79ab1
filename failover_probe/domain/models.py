"""
Domain models for the failover probe.

`Record` mirrors one row of `busy_table` before it is persisted (the database
assigns `id` and `time`). `RunConfig` freezes the run parameters so they cannot
drift while a run is in progress.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

IDLE_STATUS = "idle"


class Record(BaseModel):
    """
    Representation of a single row to insert into `busy_table`.
    """

    description: str = Field(..., max_length=255, description="Synthetic payload.")
    status: str = Field(IDLE_STATUS, description="Constant status marker.")

    model_config = {
        "frozen": True,
    }

    def __str__(self) -> str:
        return self.description


class RunConfig(BaseModel):
    """
    Parameters of one run.
    """

    test_run: int = Field(..., ge=0, description="Number of logical writes to perform.")
    rps: Optional[int] = Field(None, gt=0, description="Target records/second for rate-limited mode.")
    max_retry: int = Field(..., ge=1, description="Attempts allowed per logical write.")
    delay_retry: float = Field(..., ge=0, description="Fixed backoff between attempts (seconds).")

    model_config = {
        "frozen": True,
    }

    @property
    def inter_record_delay(self) -> float:
        """Seconds to wait after each write in rate-limited mode."""
        if not self.rps:
            return 0.0
        return 1.0 / self.rps


__all__ = ["IDLE_STATUS", "Record", "RunConfig"]
