"""Notification system for KubePulse.

Delivers batched workload alerts and restart-storm alerts to the
recipients of a configured group through one or more sinks.

Exports:
    NotificationSink         -- Abstract base for all delivery channels.
    NotificationDispatcher   -- Fans a rendered message out to every sink.
    EmailNotificationSink    -- SMTP email via stdlib smtplib.
    WebhookNotificationSink  -- JSON POST via httpx.
    StaticGroupLookup        -- Group id -> recipient list.
    GroupNotifier            -- What the monitor talks to.
    build_notification_dispatcher -- Factory used by the application bootstrap.
    build_group_notifier          -- Ditto, for the complete notifier.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from kubepulse.notifications.email import EmailNotificationSink, SMTPConfig
from kubepulse.notifications.groups import RecipientGroup, StaticGroupLookup, parse_groups
from kubepulse.notifications.manager import NotificationDispatcher, NotificationSink
from kubepulse.notifications.notifier import GroupNotifier
from kubepulse.notifications.render import RenderedMessage, render_batch, render_restart_storm
from kubepulse.notifications.webhook import WebhookNotificationSink
from kubepulse.observability.logging import get_logger

if TYPE_CHECKING:
    from kubepulse.models.config import NotificationConfig

_log = get_logger("notifications")

__all__ = [
    "EmailNotificationSink",
    "GroupNotifier",
    "NotificationDispatcher",
    "NotificationSink",
    "RecipientGroup",
    "RenderedMessage",
    "SMTPConfig",
    "StaticGroupLookup",
    "WebhookNotificationSink",
    "build_group_notifier",
    "build_notification_dispatcher",
    "parse_groups",
    "render_batch",
    "render_restart_storm",
]


def build_notification_dispatcher(config: NotificationConfig) -> NotificationDispatcher:
    """Build a NotificationDispatcher from environment-resolved secrets.

    The ``*_secret_ref`` fields name environment variables holding the
    actual secret values.  A sink is enabled only when its variable
    resolves to a non-empty string.

    Email:
        env var value is ``smtp[s]://user:pass@host:port/from@addr``.

    Webhook:
        env var value is the webhook URL.
    """
    sinks: list[NotificationSink] = []

    # --- Email ---
    email_ref = config.email_secret_ref
    if email_ref:
        smtp_dsn = os.environ.get(email_ref, "")
        if smtp_dsn:
            try:
                sinks.append(EmailNotificationSink(smtp_config=_parse_smtp_dsn(smtp_dsn)))
                _log.info("email_sink_enabled")
            except ValueError as exc:
                _log.warning("email_sink_disabled", reason=str(exc))
        else:
            _log.debug("email_sink_skipped", reason="secret ref env var is empty")

    # --- Generic webhook ---
    webhook_ref = config.webhook_secret_ref
    if webhook_ref:
        webhook_url = os.environ.get(webhook_ref, "")
        if webhook_url:
            try:
                sinks.append(WebhookNotificationSink(url=webhook_url))
                _log.info("webhook_sink_enabled")
            except ValueError as exc:
                _log.warning("webhook_sink_disabled", reason=str(exc))
        else:
            _log.debug("webhook_sink_skipped", reason="secret ref env var is empty")

    if not sinks:
        _log.info("no_notification_sinks_configured")

    return NotificationDispatcher(sinks=sinks)


def build_group_notifier(config: NotificationConfig, cluster_id: str = "") -> GroupNotifier:
    groups = StaticGroupLookup.from_string(config.groups)
    if config.group_id and config.group_id not in groups:
        _log.warning("recipient_group_not_found", group_id=config.group_id)
    return GroupNotifier(
        dispatcher=build_notification_dispatcher(config),
        groups=groups,
        group_id=config.group_id,
        cluster_id=cluster_id,
    )


def _parse_smtp_dsn(dsn: str) -> SMTPConfig:
    """Parse ``smtp[s]://user:pass@host:port/from@addr`` into SMTPConfig.

    The ``from@addr`` segment is the URL path (with leading slash stripped).
    ``use_tls`` is True when the scheme is ``smtps``.

    Raises:
        ValueError: if the DSN cannot be parsed.
    """
    parsed = urlparse(dsn)
    if parsed.scheme not in ("smtp", "smtps"):
        raise ValueError(f"SMTP DSN must start with smtp:// or smtps://, got: {dsn!r}")
    return SMTPConfig(
        host=parsed.hostname or "",
        port=parsed.port or (465 if parsed.scheme == "smtps" else 587),
        username=parsed.username or "",
        password=parsed.password or "",
        from_addr=(parsed.path or "").lstrip("/"),
        use_tls=parsed.scheme == "smtps",
    )
