"""Notification sink interface and fan-out dispatcher.

NotificationSink       -- ABC every delivery channel implements.
NotificationDispatcher -- Sends one rendered message to all sinks
                          concurrently; a failing sink never blocks the
                          others.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence

from kubepulse.observability.logging import get_logger
from kubepulse.observability.metrics import notifications_total

_log = get_logger("notifications.manager")


class NotificationSink(ABC):
    """Abstract base class for delivery channels.

    ``send`` should not raise; return ``False`` instead.
    """

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Channel identifier used in metrics and logs."""

    @abstractmethod
    async def send(
        self,
        subject: str,
        body: str,
        recipients: Sequence[str],
        html: str | None = None,
    ) -> bool:
        """Deliver one message.

        Returns:
            True  -- message accepted by the remote endpoint.
            False -- delivery failed (already logged inside implementation).
        """


class NotificationDispatcher:
    """Fan-out to every registered sink.

    Delivery counts as successful when at least one sink accepts the
    message.  With no sinks registered nothing is sent and ``send``
    returns False.
    """

    def __init__(self, sinks: list[NotificationSink]) -> None:
        self._sinks = sinks

    @property
    def has_sinks(self) -> bool:
        return bool(self._sinks)

    @property
    def channel_names(self) -> list[str]:
        return [sink.channel_name for sink in self._sinks]

    async def send(
        self,
        subject: str,
        body: str,
        recipients: Sequence[str],
        html: str | None = None,
    ) -> bool:
        if not self._sinks:
            _log.warning("notification_dropped", reason="no sinks configured", subject=subject)
            return False
        results = await asyncio.gather(
            *(self._send_one(sink, subject, body, recipients, html) for sink in self._sinks)
        )
        return any(results)

    async def _send_one(
        self,
        sink: NotificationSink,
        subject: str,
        body: str,
        recipients: Sequence[str],
        html: str | None,
    ) -> bool:
        """Deliver to a single sink, recording metrics regardless of outcome."""
        try:
            success = await sink.send(subject, body, recipients, html)
        except Exception as exc:  # noqa: BLE001
            _log.error(
                "notification_sink_unexpected_error",
                channel=sink.channel_name,
                subject=subject,
                error=str(exc),
            )
            success = False

        label = "true" if success else "false"
        notifications_total.labels(channel=sink.channel_name, success=label).inc()

        if success:
            _log.info(
                "notification_sent",
                channel=sink.channel_name,
                subject=subject,
                recipients=len(recipients),
            )
        else:
            _log.warning("notification_failed", channel=sink.channel_name, subject=subject)
        return success
