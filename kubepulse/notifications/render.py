"""Plain-text and HTML rendering of batch and restart-storm notifications."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape

from kubepulse.models.alerts import (
    AlertEvent,
    AlertType,
    BatchNotification,
    ClusterOverview,
    RestartStormAlert,
)

SUBJECT_PREFIX = "[KubePulse]"

# Display order of event categories in the message body.
SECTION_ORDER: tuple[tuple[AlertType, str], ...] = (
    (AlertType.FAILED, "New failures"),
    (AlertType.STOPPED, "Stopped workloads"),
    (AlertType.DEGRADED, "New degraded"),
    (AlertType.STARTED, "Started workloads"),
    (AlertType.RECOVERED, "Recovered workloads"),
)

_SECTION_COLOR: dict[AlertType, str] = {
    AlertType.FAILED: "#b71c1c",
    AlertType.STOPPED: "#6f42c1",
    AlertType.DEGRADED: "#e65100",
    AlertType.STARTED: "#17a2b8",
    AlertType.RECOVERED: "#2e7d32",
}

_HEALTH_COLOR: dict[str, str] = {
    "CRITICAL": "#b71c1c",
    "DEGRADED": "#e65100",
    "HEALTHY": "#2e7d32",
    "UNKNOWN": "#616161",
}

_RULE = "=" * 60
_THIN_RULE = "-" * 60


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    text: str
    html: str


def batch_subject(notification: BatchNotification) -> str:
    """Subject line: the most serious change category wins.

    Precedence is new failures, then stops, then degradations, then
    recoveries/starts, then a steady-state summary.
    """
    failed = notification.count(AlertType.FAILED)
    degraded = notification.count(AlertType.DEGRADED)
    recovered = notification.count(AlertType.RECOVERED)
    stopped = notification.count(AlertType.STOPPED)
    started = notification.count(AlertType.STARTED)

    overview = notification.overview
    if overview is None:
        health = "UNKNOWN"
        tally = "cluster overview unavailable"
        total_failed = total_degraded = 0
    else:
        health = overview.cluster_health
        tally = f"{overview.healthy}/{overview.total} healthy"
        total_failed, total_degraded = overview.failed, overview.degraded

    if failed or total_failed:
        parts = [f"{failed} new failures"]
        if overview is not None:
            parts.append(f"{total_failed} total failed")
    elif stopped:
        parts = [f"{stopped} stopped", f"{started} started"]
    elif degraded or total_degraded:
        parts = [f"{degraded} new degraded"]
        if overview is not None:
            parts.append(f"{total_degraded} total degraded")
    elif recovered or started:
        parts = [f"{recovered + started} recovered/started"]
    elif overview is not None:
        return f"{SUBJECT_PREFIX} {health}: {overview.healthy}/{overview.total} workloads healthy"
    else:
        return f"{SUBJECT_PREFIX} {health}: {tally}"
    return f"{SUBJECT_PREFIX} {health}: {', '.join([*parts, tally])}"


def _pods_column(event: AlertEvent) -> str:
    state = event.workload
    text = f"{state.ready_replicas}/{state.desired_replicas}"
    if event.previous_healthy is not None and event.current_healthy is not None:
        text += f" (healthy {event.previous_healthy} -> {event.current_healthy})"
    return text


def _event_line(event: AlertEvent) -> str:
    key = event.workload.key
    return (
        f"  {key.kind}/{key.name} in {key.namespace}  "
        f"[{str(event.workload.status).upper()}]  pods {_pods_column(event)}  "
        f"{event.timestamp.strftime('%H:%M:%S')}  {event.reason}"
    )


def _overview_text(overview: ClusterOverview | None) -> list[str]:
    lines = ["Cluster overview", _THIN_RULE]
    if overview is None:
        lines.append("Cluster overview unavailable: the flush-time listing failed.")
        return lines
    lines.append(
        f"Health: {overview.cluster_health}  healthy {overview.healthy}  "
        f"degraded {overview.degraded}  failed {overview.failed}  total {overview.total}"
    )
    for namespace in sorted(overview.by_namespace):
        ns = overview.by_namespace[namespace]
        lines.append(f"  {namespace}: {ns.healthy} healthy, {ns.degraded} degraded, {ns.failed} failed")
    if overview.failed_workloads:
        lines.append("Currently failed: " + ", ".join(str(k) for k in overview.failed_workloads))
    if overview.degraded_workloads:
        lines.append("Currently degraded: " + ", ".join(str(k) for k in overview.degraded_workloads))
    return lines


def _batch_text(notification: BatchNotification, cluster_id: str) -> str:
    lines = ["KubePulse workload alert", _RULE, ""]
    if cluster_id:
        lines.append(f"Cluster:    {cluster_id}")
    lines.append(f"Changes:    {notification.total_events}")
    lines.append(f"Generated:  {notification.created_at.strftime('%Y-%m-%d %H:%M:%S UTC')}")
    lines.append("")
    for alert_type, title in SECTION_ORDER:
        events = notification.events.get(alert_type, ())
        if not events:
            continue
        lines.extend([f"{title} ({len(events)})", _THIN_RULE])
        lines.extend(_event_line(event) for event in events)
        lines.append("")
    lines.extend(_overview_text(notification.overview))
    return "\n".join(lines) + "\n"


def _html_section(alert_type: AlertType, title: str, events: tuple[AlertEvent, ...]) -> str:
    color = _SECTION_COLOR[alert_type]
    rows = "".join(
        f"""
          <tr style="border-bottom: 1px solid #e0e0e0;">
            <td style="font-family: monospace;">{escape(event.workload.key.kind)}/{escape(event.workload.key.name)}</td>
            <td style="font-family: monospace;">{escape(event.workload.key.namespace)}</td>
            <td>{escape(str(event.workload.status).upper())}</td>
            <td>{escape(_pods_column(event))}</td>
            <td style="color: #757575;">{escape(event.reason)}</td>
            <td style="color: #757575;">{event.timestamp.strftime('%H:%M:%S')}</td>
          </tr>"""
        for event in events
    )
    return f"""
        <h2 style="font-size: 15px; color: {color}; margin: 20px 0 8px;">{escape(title)} ({len(events)})</h2>
        <table width="100%" cellpadding="6" cellspacing="0" style="border-collapse: collapse;">{rows}
        </table>"""


def _html_overview(overview: ClusterOverview | None) -> str:
    if overview is None:
        return """
        <h2 style="font-size: 15px; color: #424242; margin: 20px 0 8px;">Cluster overview</h2>
        <p style="color: #757575;">Cluster overview unavailable: the flush-time listing failed.</p>"""
    rows = "".join(
        f"""
          <tr style="border-bottom: 1px solid #e0e0e0;">
            <td style="font-family: monospace;">{escape(namespace)}</td>
            <td>{ns.healthy}</td><td>{ns.degraded}</td><td>{ns.failed}</td>
          </tr>"""
        for namespace, ns in sorted(overview.by_namespace.items())
    )
    return f"""
        <h2 style="font-size: 15px; color: #424242; margin: 20px 0 8px;">Cluster overview</h2>
        <p style="margin: 0 0 8px;">
          Healthy <strong>{overview.healthy}</strong> &middot;
          Degraded <strong>{overview.degraded}</strong> &middot;
          Failed <strong>{overview.failed}</strong> &middot;
          Total <strong>{overview.total}</strong>
        </p>
        <table width="100%" cellpadding="6" cellspacing="0" style="border-collapse: collapse;">
          <tr style="color: #757575;"><td>Namespace</td><td>Healthy</td><td>Degraded</td><td>Failed</td></tr>{rows}
        </table>"""


def _batch_html(notification: BatchNotification, cluster_id: str) -> str:
    health = notification.overview.cluster_health if notification.overview is not None else "UNKNOWN"
    color = _HEALTH_COLOR[health]
    sections = "".join(
        _html_section(alert_type, title, notification.events[alert_type])
        for alert_type, title in SECTION_ORDER
        if notification.events.get(alert_type)
    )
    cluster_line = f" &middot; {escape(cluster_id)}" if cluster_id else ""
    generated = notification.created_at.strftime("%Y-%m-%d %H:%M:%S UTC")
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>KubePulse Alert</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
             background: #f5f5f5; margin: 0; padding: 24px;">
  <table width="760" cellpadding="0" cellspacing="0"
         style="background: #ffffff; border-radius: 8px; margin: 0 auto;">
    <tr>
      <td style="background: {color}; padding: 20px 28px; border-radius: 8px 8px 0 0;">
        <h1 style="color: #ffffff; margin: 0; font-size: 20px;">
          KubePulse &middot; {health}{cluster_line}
        </h1>
        <p style="color: #ffffff; margin: 6px 0 0;">{notification.total_events} changes detected</p>
      </td>
    </tr>
    <tr>
      <td style="padding: 8px 28px 24px;">{sections}{_html_overview(notification.overview)}
      </td>
    </tr>
    <tr>
      <td style="background: #f5f5f5; padding: 12px 28px; border-radius: 0 0 8px 8px;
                 font-size: 12px; color: #9e9e9e;">
        Generated at {generated}
      </td>
    </tr>
  </table>
</body>
</html>"""


def render_batch(notification: BatchNotification, cluster_id: str = "") -> RenderedMessage:
    return RenderedMessage(
        subject=batch_subject(notification),
        text=_batch_text(notification, cluster_id),
        html=_batch_html(notification, cluster_id),
    )


def render_restart_storm(alert: RestartStormAlert, cluster_id: str = "") -> RenderedMessage:
    subject = (
        f"{SUBJECT_PREFIX} Restart storm: {alert.namespace}/{alert.pod_name} "
        f"restarted {alert.restart_count} times"
    )
    detected = alert.detected_at.strftime("%Y-%m-%d %H:%M:%S UTC")
    rows = [
        ("Pod", f"{alert.namespace}/{alert.pod_name}"),
        ("Node", alert.node or "unknown"),
        ("Restarts", f"{alert.restart_count} (was {alert.previous_count})"),
        ("Threshold", str(alert.threshold)),
        ("Detected", detected),
        ("Alert ID", alert.alert_id),
    ]
    if cluster_id:
        rows.insert(0, ("Cluster", cluster_id))

    text = "KubePulse restart storm\n" + _RULE + "\n\n"
    text += "".join(f"{label + ':':<11} {value}\n" for label, value in rows)

    cells = "".join(
        f"""
          <tr style="border-bottom: 1px solid #e0e0e0;">
            <td style="color: #757575; width: 120px;"><strong>{label}</strong></td>
            <td style="font-family: monospace;">{escape(value)}</td>
          </tr>"""
        for label, value in rows
    )
    html = f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>KubePulse Restart Storm</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
             background: #f5f5f5; margin: 0; padding: 24px;">
  <table width="600" cellpadding="0" cellspacing="0"
         style="background: #ffffff; border-radius: 8px; margin: 0 auto;">
    <tr>
      <td style="background: #e65100; padding: 20px 28px; border-radius: 8px 8px 0 0;">
        <h1 style="color: #ffffff; margin: 0; font-size: 20px;">Restart storm</h1>
      </td>
    </tr>
    <tr>
      <td style="padding: 24px 28px;">
        <table width="100%" cellpadding="6" cellspacing="0" style="border-collapse: collapse;">{cells}
        </table>
      </td>
    </tr>
  </table>
</body>
</html>"""
    return RenderedMessage(subject=subject, text=text, html=html)
