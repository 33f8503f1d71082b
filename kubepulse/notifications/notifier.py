"""Binds rendering, recipient resolution and the dispatcher together."""

from __future__ import annotations

from kubepulse.models.alerts import BatchNotification, RestartStormAlert
from kubepulse.notifications.groups import RecipientLookup
from kubepulse.notifications.manager import NotificationDispatcher
from kubepulse.notifications.render import render_batch, render_restart_storm
from kubepulse.observability.logging import get_logger

_log = get_logger("notifications.notifier")


class GroupNotifier:
    """Delivers monitor output to the recipients of one configured group.

    ``enabled`` is False when no sink is configured or the group resolves
    to nobody; the monitor then stops buffering events.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        groups: RecipientLookup,
        group_id: str,
        cluster_id: str = "",
    ) -> None:
        self._dispatcher = dispatcher
        self._groups = groups
        self._group_id = group_id
        self._cluster_id = cluster_id

    @property
    def enabled(self) -> bool:
        return self._dispatcher.has_sinks and bool(self._recipients())

    def _recipients(self) -> list[str]:
        if not self._group_id:
            return []
        return self._groups.resolve(self._group_id)

    async def deliver_batch(self, notification: BatchNotification) -> bool:
        """Send a batch.  A group that vanished since buffering discards it."""
        recipients = self._recipients()
        if not recipients:
            _log.warning(
                "batch_discarded",
                reason="recipient group unavailable",
                group_id=self._group_id,
                events=notification.total_events,
            )
            return True
        message = render_batch(notification, self._cluster_id)
        return await self._dispatcher.send(message.subject, message.text, recipients, html=message.html)

    async def deliver_restart_alert(self, alert: RestartStormAlert) -> bool:
        recipients = self._recipients()
        if not recipients:
            _log.warning(
                "restart_alert_discarded",
                reason="recipient group unavailable",
                group_id=self._group_id,
                pod=f"{alert.namespace}/{alert.pod_name}",
            )
            return False
        message = render_restart_storm(alert, self._cluster_id)
        return await self._dispatcher.send(message.subject, message.text, recipients, html=message.html)
