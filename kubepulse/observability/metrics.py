"""Prometheus collectors for the scan loop, alert pipeline and notifications.

All collectors live on the default registry so the exposition endpoint
started by the application bootstrap picks them up without wiring.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

scans_total = Counter(
    "kubepulse_scans_total",
    "Workload scans by outcome.",
    ["outcome"],
)

alert_events_total = Counter(
    "kubepulse_alert_events_total",
    "Workload alert events queued for batching, by type.",
    ["type"],
)

alerts_evicted_total = Counter(
    "kubepulse_alerts_evicted_total",
    "Pending alert events dropped because the batch buffer was full.",
)

pending_alerts = Gauge(
    "kubepulse_pending_alerts",
    "Alert events currently buffered awaiting a batch flush.",
)

notifications_total = Counter(
    "kubepulse_notifications_total",
    "Notification delivery attempts by channel and outcome.",
    ["channel", "success"],
)

restart_storm_alerts_total = Counter(
    "kubepulse_restart_storm_alerts_total",
    "Restart-storm alerts raised for individual pods.",
)

node_ready = Gauge(
    "kubepulse_node_ready",
    "Node readiness as last observed (1 ready, 0 not ready).",
    ["node"],
)

node_transitions_total = Counter(
    "kubepulse_node_transitions_total",
    "Node readiness transitions by target state.",
    ["to"],
)
