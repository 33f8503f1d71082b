"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class KubernetesConfig:
    """Cluster access configuration."""

    in_cluster: bool = False
    kubeconfig: str = ""
    context: str = ""
    fetch_timeout_seconds: int = 20

    @property
    def is_configured(self) -> bool:
        return self.in_cluster or bool(self.kubeconfig.strip())


@dataclass
class MonitorConfig:
    """Scan loop, baseline and batching configuration."""

    scan_interval_seconds: int = 120
    startup_delay_seconds: float = 5.0
    grace_period_seconds: float = 60.0
    batch_delay_seconds: float = 30.0
    max_pending_alerts: int = 500
    flush_on_stop: bool = False
    enhanced_classification: bool = False
    persistent_critical_minutes: int = 10


@dataclass
class RestartAlertConfig:
    """Restart-storm alerting configuration."""

    enabled: bool = True
    threshold: int = 5
    cooldown_minutes: int = 30


@dataclass
class NotificationConfig:
    """Notification system configuration."""

    group_id: str = ""
    groups: str = ""
    email_secret_ref: str = ""
    webhook_secret_ref: str = ""


@dataclass
class MetricsConfig:
    """Prometheus exposition configuration."""

    port: int = 0


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class KubePulseConfig:
    """Top-level KubePulse configuration."""

    cluster_id: str = ""
    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    restart_alerts: RestartAlertConfig = field(default_factory=RestartAlertConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    log: LogConfig = field(default_factory=LogConfig)
