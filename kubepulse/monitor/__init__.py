"""Stateful monitoring: scan loop, baseline, batching, restart and node tracking."""

from kubepulse.monitor.baseline import BaselineManager
from kubepulse.monitor.coalescer import AlertCoalescer, PendingAlertBatch
from kubepulse.monitor.engine import AlertNotifier, MonitorStatus, ScanOutcome, ScanReport, WorkloadMonitor
from kubepulse.monitor.nodes import NodeHealthMonitor
from kubepulse.monitor.restarts import RestartAlertSettings, RestartStormTracker
from kubepulse.monitor.timers import ReschedulableTimer

__all__ = [
    "AlertCoalescer",
    "AlertNotifier",
    "BaselineManager",
    "MonitorStatus",
    "NodeHealthMonitor",
    "PendingAlertBatch",
    "ReschedulableTimer",
    "RestartAlertSettings",
    "RestartStormTracker",
    "ScanOutcome",
    "ScanReport",
    "WorkloadMonitor",
]
