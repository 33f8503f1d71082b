"""Baseline capture and the post-start grace period.

The first successful scan after start is stored with ``is_baseline=True``
and starts the grace timer.  Until the timer fires, every scan only
refreshes the stored baseline.  Grace only begins once a baseline exists,
so a start-up listing failure cannot make the first real scan treat every
workload as newly started.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from kubepulse.health.grouping import WorkloadGroup
from kubepulse.health.scoring import score_workload
from kubepulse.models.workloads import WorkloadKey, WorkloadState
from kubepulse.monitor.timers import ReschedulableTimer
from kubepulse.observability.logging import get_logger

_log = get_logger("monitor.baseline")


class BaselineManager:
    """Owns the engine-wide ``initialization_complete`` flag."""

    def __init__(self, grace_period_seconds: float = 60.0) -> None:
        self._grace_period = grace_period_seconds
        self._timer = ReschedulableTimer(self._on_grace_elapsed, name="baseline-grace")
        self._captured_at: datetime | None = None
        self._initialization_complete = False

    @property
    def initialization_complete(self) -> bool:
        return self._initialization_complete

    @property
    def captured_at(self) -> datetime | None:
        return self._captured_at

    @property
    def grace_active(self) -> bool:
        return self._timer.scheduled or self._timer.running

    def capture(
        self,
        groups: Mapping[WorkloadKey, WorkloadGroup],
        previous: Mapping[WorkloadKey, WorkloadState],
        now: datetime,
    ) -> dict[WorkloadKey, WorkloadState]:
        """Score *groups* as baseline states; the first capture starts the grace timer."""
        states = {
            key: score_workload(group, previous.get(key), now, is_baseline=True)
            for key, group in groups.items()
        }
        if self._captured_at is None:
            self._captured_at = now
            if not self._initialization_complete:
                self._timer.schedule(self._grace_period)
            _log.info(
                "baseline_captured",
                workloads=len(states),
                grace_period_seconds=self._grace_period,
            )
        else:
            _log.debug("baseline_refreshed", workloads=len(states))
        return states

    def complete(self) -> bool:
        """End the grace period now.  Refused until a baseline exists."""
        if self._captured_at is None:
            _log.warning("grace_period_complete_refused", reason="no baseline captured")
            return False
        self._timer.cancel()
        if not self._initialization_complete:
            self._initialization_complete = True
            _log.info("baseline_initialization_complete")
        return True

    def reset(self) -> None:
        self._timer.cancel()
        self._captured_at = None
        self._initialization_complete = False

    async def shutdown(self) -> None:
        await self._timer.shutdown()

    async def _on_grace_elapsed(self) -> None:
        self.complete()
