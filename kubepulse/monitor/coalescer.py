"""Debounced batching of workload alert events.

Every ``add()`` pushes the flush deadline back by ``delay_seconds``, so a
burst of transitions is delivered as a single notification once the
cluster has been quiet for that long.  Delivery failures keep the buffer
intact for the next attempt.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

from kubepulse.models.alerts import AlertEvent, AlertType, BatchNotification, ClusterOverview
from kubepulse.monitor.timers import ReschedulableTimer
from kubepulse.observability.logging import get_logger
from kubepulse.observability.metrics import alerts_evicted_total, pending_alerts

_log = get_logger("monitor.coalescer")

OverviewFn = Callable[[], Awaitable[ClusterOverview | None]]
DeliverFn = Callable[[BatchNotification], Awaitable[bool]]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class PendingAlertBatch:
    """Per-type FIFO buffers of events awaiting delivery."""

    def __init__(self) -> None:
        self._events: dict[AlertType, list[AlertEvent]] = {t: [] for t in AlertType}
        self.flush_deadline: datetime | None = None

    def __len__(self) -> int:
        return sum(len(items) for items in self._events.values())

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def events(self, alert_type: AlertType) -> tuple[AlertEvent, ...]:
        return tuple(self._events[alert_type])

    def append(self, event: AlertEvent) -> None:
        self._events[event.type].append(event)

    def snapshot(self) -> dict[AlertType, tuple[AlertEvent, ...]]:
        return {t: tuple(items) for t, items in self._events.items()}

    def remove(self, event_ids: set[str]) -> None:
        for alert_type, items in self._events.items():
            self._events[alert_type] = [e for e in items if e.event_id not in event_ids]

    def evict_oldest(self) -> AlertEvent | None:
        """Drop the earliest-timestamped event across all types."""
        candidates = [items[0] for items in self._events.values() if items]
        if not candidates:
            return None
        oldest = min(candidates, key=lambda e: e.timestamp)
        self._events[oldest.type].pop(0)
        return oldest

    def clear(self) -> int:
        dropped = len(self)
        for items in self._events.values():
            items.clear()
        self.flush_deadline = None
        return dropped


class AlertCoalescer:
    """Buffers events and delivers them as one BatchNotification.

    Args:
        overview_fn:    Fetches a fresh cluster overview at flush time.
                        Returning None (or raising) marks it unavailable.
        deliver_fn:     Sends the batch; returns True on success.
        delay_seconds:  Quiet period before a flush.
        max_pending:    Buffer cap; the oldest event is evicted beyond it.
    """

    def __init__(
        self,
        overview_fn: OverviewFn,
        deliver_fn: DeliverFn,
        *,
        delay_seconds: float = 30.0,
        max_pending: int = 500,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._overview_fn = overview_fn
        self._deliver_fn = deliver_fn
        self._delay = delay_seconds
        self._max_pending = max_pending
        self._clock = clock
        self._batch = PendingAlertBatch()
        self._timer = ReschedulableTimer(self.flush, name="alert-batch-flush")
        self._flush_lock = asyncio.Lock()

    @property
    def batch(self) -> PendingAlertBatch:
        return self._batch

    @property
    def pending_count(self) -> int:
        return len(self._batch)

    @property
    def flush_scheduled(self) -> bool:
        return self._timer.scheduled

    def add(self, event: AlertEvent) -> None:
        self._batch.append(event)
        while len(self._batch) > self._max_pending:
            evicted = self._batch.evict_oldest()
            if evicted is None:
                break
            alerts_evicted_total.inc()
            _log.warning(
                "pending_alert_evicted",
                type=str(evicted.type),
                workload=str(evicted.workload.key),
                max_pending=self._max_pending,
            )
        self._timer.schedule(self._delay)
        self._batch.flush_deadline = self._clock() + timedelta(seconds=self._delay)
        pending_alerts.set(len(self._batch))

    async def flush(self) -> bool:
        """Deliver everything buffered so far.  Returns True if something was sent."""
        async with self._flush_lock:
            if self._batch.is_empty:
                self._batch.flush_deadline = None
                return False

            events = self._batch.snapshot()
            sent_ids = {e.event_id for items in events.values() for e in items}

            try:
                overview = await self._overview_fn()
            except Exception as exc:
                _log.warning("batch_overview_failed", error=str(exc))
                overview = None

            notification = BatchNotification(events=events, overview=overview, created_at=self._clock())
            try:
                delivered = await self._deliver_fn(notification)
            except Exception as exc:
                _log.error("batch_delivery_failed", error=str(exc), events=len(sent_ids))
                delivered = False

            if not delivered:
                _log.warning("batch_retained_after_failure", pending=len(self._batch))
                return False

            self._batch.remove(sent_ids)
            if self._batch.is_empty:
                self._timer.cancel()
                self._batch.flush_deadline = None
            pending_alerts.set(len(self._batch))
            _log.info(
                "batch_delivered",
                events=len(sent_ids),
                overview_available=overview is not None,
                remaining=len(self._batch),
            )
            return True

    def discard(self) -> int:
        """Cancel the pending flush and drop all buffered events."""
        self._timer.cancel()
        dropped = self._batch.clear()
        pending_alerts.set(0)
        if dropped:
            _log.info("pending_alerts_discarded", dropped=dropped)
        return dropped

    async def shutdown(self) -> None:
        await self._timer.shutdown()
