"""
Run controller: drives a fixed number of logical writes and reports timing.

Two modes:
- burst: writes back-to-back, used to generate dummy data as fast as possible.
- rate_limited: sleeps `1 / rps` seconds after each completed write. The rate is
  approximate; time spent in the write itself is not compensated.

Writes are strictly sequential. A WriteAbortedError from the write loop ends
the run and propagates to the caller.

Usage:
    from failover_probe.controller import RunController, RunMode

    controller = RunController(writer, RecordGenerator(), run_config)
    summary = controller.run(RunMode.RATE_LIMITED)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional

from failover_probe.domain.models import RunConfig
from failover_probe.generator import RecordGenerator
from failover_probe.utils.logging import get_logger
from failover_probe.writer import WriteRetryLoop

log = get_logger(__name__)


class RunMode(str, Enum):
    BURST = "burst"
    RATE_LIMITED = "rate_limited"


@dataclass
class RunSummary:
    """
    Aggregate outcome of a completed run.
    """

    mode: RunMode
    started_at: datetime
    finished_at: Optional[datetime] = None
    duration_seconds: float = 0.0
    records: int = 0
    attempts: int = 0
    downtimes_ms: List[int] = field(default_factory=list)

    @property
    def recovered_streaks(self) -> int:
        return len(self.downtimes_ms)

    @property
    def max_downtime_ms(self) -> Optional[int]:
        return max(self.downtimes_ms) if self.downtimes_ms else None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunController:
    def __init__(
        self,
        writer: WriteRetryLoop,
        generator: RecordGenerator,
        config: RunConfig,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.perf_counter,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._writer = writer
        self._generator = generator
        self._config = config
        self._sleep = sleep
        self._clock = clock
        self._now = now

    def run(self, mode: RunMode) -> RunSummary:
        """
        Perform `config.test_run` logical writes in the given mode.

        Raises
        ------
        ValueError
            If rate-limited mode is requested without a target rate.
        WriteAbortedError
            If a logical write exhausted its retry budget.
        """
        if mode is RunMode.RATE_LIMITED and not self._config.rps:
            raise ValueError("rate_limited mode requires a target rps")

        delay = self._config.inter_record_delay if mode is RunMode.RATE_LIMITED else 0.0

        log.info("==============")
        if mode is RunMode.RATE_LIMITED:
            log.info(f"Start Write Data Simulation at {self._config.rps} RPS")
        else:
            log.info("Start Dummy Data Generator")

        summary = RunSummary(mode=mode, started_at=self._now())
        log.info(f"Start time: {summary.started_at.isoformat()}", extra={"mode": mode.value})
        start = self._clock()

        for _ in range(self._config.test_run):
            outcome = self._writer.write(self._generator.generate())
            summary.records += 1
            summary.attempts += outcome.attempts
            if outcome.downtime_ms is not None:
                summary.downtimes_ms.append(outcome.downtime_ms)
            if delay:
                self._sleep(delay)

        summary.duration_seconds = self._clock() - start
        summary.finished_at = self._now()
        log.info(f"End time: {summary.finished_at.isoformat()}")
        log.info(
            f"Duration: {summary.duration_seconds:.3f}s",
            extra={
                "mode": mode.value,
                "records": summary.records,
                "attempts": summary.attempts,
                "recovered_streaks": summary.recovered_streaks,
            },
        )
        return summary


__all__ = ["RunController", "RunMode", "RunSummary"]
