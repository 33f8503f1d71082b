"""Per-pod restart-storm detection with a cooldown between alerts."""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from datetime import datetime, timedelta

from kubepulse.models.alerts import RestartStormAlert
from kubepulse.models.cluster import PodRecord
from kubepulse.observability.logging import get_logger

_log = get_logger("monitor.restarts")

THRESHOLD_RANGE = (1, 100)
COOLDOWN_RANGE_MINUTES = (1, 1440)


@dataclass
class RestartTrackEntry:
    """Tracking state for one (namespace, pod name)."""

    restart_count: int
    last_seen: datetime
    last_alert_time: datetime | None = None


@dataclass(frozen=True)
class RestartAlertSettings:
    enabled: bool
    threshold: int
    cooldown_minutes: int


def _check_range(name: str, value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}")
    return value


class RestartStormTracker:
    """Watches restart counters against a threshold.

    A pod seen for the first time only seeds its entry.  Afterwards an
    alert fires when the counter has grown, exceeds the threshold, and no
    alert was raised for the pod within the cooldown.
    """

    def __init__(self, enabled: bool = True, threshold: int = 5, cooldown_minutes: int = 30) -> None:
        self._enabled = enabled
        self._threshold = _check_range("threshold", threshold, THRESHOLD_RANGE)
        self._cooldown_minutes = _check_range("cooldown_minutes", cooldown_minutes, COOLDOWN_RANGE_MINUTES)
        self._entries: dict[tuple[str, str], RestartTrackEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def settings(self) -> RestartAlertSettings:
        return RestartAlertSettings(
            enabled=self._enabled,
            threshold=self._threshold,
            cooldown_minutes=self._cooldown_minutes,
        )

    def configure(
        self,
        *,
        enabled: bool | None = None,
        threshold: int | None = None,
        cooldown_minutes: int | None = None,
    ) -> RestartAlertSettings:
        """Update settings; all values are validated before any is applied."""
        if threshold is not None:
            _check_range("threshold", threshold, THRESHOLD_RANGE)
        if cooldown_minutes is not None:
            _check_range("cooldown_minutes", cooldown_minutes, COOLDOWN_RANGE_MINUTES)

        if enabled is not None:
            self._enabled = enabled
        if threshold is not None:
            self._threshold = threshold
        if cooldown_minutes is not None:
            self._cooldown_minutes = cooldown_minutes

        settings = self.settings
        _log.info(
            "restart_alerts_configured",
            enabled=settings.enabled,
            threshold=settings.threshold,
            cooldown_minutes=settings.cooldown_minutes,
        )
        return settings

    def observe(self, pod: PodRecord, now: datetime) -> RestartStormAlert | None:
        entry = self._entries.get(pod.key)
        if entry is None:
            self._entries[pod.key] = RestartTrackEntry(restart_count=pod.restart_count, last_seen=now)
            return None

        previous_count = entry.restart_count
        entry.restart_count = pod.restart_count
        entry.last_seen = now

        if not self._enabled:
            return None
        if pod.restart_count <= self._threshold or pod.restart_count <= previous_count:
            return None
        if entry.last_alert_time is not None and now - entry.last_alert_time <= timedelta(
            minutes=self._cooldown_minutes
        ):
            _log.debug(
                "restart_alert_in_cooldown",
                namespace=pod.namespace,
                pod=pod.name,
                restart_count=pod.restart_count,
            )
            return None

        entry.last_alert_time = now
        return RestartStormAlert(
            namespace=pod.namespace,
            pod_name=pod.name,
            node=pod.node,
            restart_count=pod.restart_count,
            previous_count=previous_count,
            threshold=self._threshold,
            detected_at=now,
        )

    def prune(self, active: Collection[tuple[str, str]]) -> int:
        """Drop entries for pods missing from a successful listing."""
        stale = [key for key in self._entries if key not in active]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def reset(self) -> None:
        self._entries.clear()
