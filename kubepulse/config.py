"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from kubepulse.models.config import (
    KubePulseConfig,
    KubernetesConfig,
    LogConfig,
    MetricsConfig,
    MonitorConfig,
    NotificationConfig,
    RestartAlertConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBEPULSE_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_groups(value: str) -> str:
    """Check the inline ``id=addr,addr;id=addr`` recipient group syntax."""
    for chunk in filter(None, (part.strip() for part in value.split(";"))):
        group_id, sep, addresses = chunk.partition("=")
        if not sep or not group_id.strip():
            raise ValueError(f"Invalid recipient group definition: {chunk!r}")
        if not any(addr.strip() for addr in addresses.split(",")):
            raise ValueError(f"Recipient group {group_id.strip()!r} has no addresses")
    return value


def load_config() -> KubePulseConfig:
    """Load configuration from KUBEPULSE_* environment variables."""
    return KubePulseConfig(
        cluster_id=_env("CLUSTER_ID", ""),
        kubernetes=KubernetesConfig(
            in_cluster=_env_bool("KUBERNETES_IN_CLUSTER", False),
            kubeconfig=_env("KUBERNETES_KUBECONFIG", os.environ.get("KUBECONFIG", "")),
            context=_env("KUBERNETES_CONTEXT", ""),
            fetch_timeout_seconds=_env_int("KUBERNETES_FETCH_TIMEOUT", 20, min_val=1, max_val=110),
        ),
        monitor=MonitorConfig(
            scan_interval_seconds=_env_int("MONITOR_SCAN_INTERVAL", 120, min_val=10),
            startup_delay_seconds=_env_float("MONITOR_STARTUP_DELAY", 5.0, min_val=0.0),
            grace_period_seconds=_env_float("MONITOR_GRACE_PERIOD", 60.0, min_val=0.0),
            batch_delay_seconds=_env_float("MONITOR_BATCH_DELAY", 30.0, min_val=0.0),
            max_pending_alerts=_env_int("MONITOR_MAX_PENDING_ALERTS", 500, min_val=10),
            flush_on_stop=_env_bool("MONITOR_FLUSH_ON_STOP", False),
            enhanced_classification=_env_bool("MONITOR_ENHANCED_CLASSIFICATION", False),
            persistent_critical_minutes=_env_int("MONITOR_PERSISTENT_CRITICAL_MINUTES", 10, min_val=1),
        ),
        restart_alerts=RestartAlertConfig(
            enabled=_env_bool("RESTART_ALERTS_ENABLED", True),
            threshold=_env_int("RESTART_ALERTS_THRESHOLD", 5, min_val=1, max_val=100),
            cooldown_minutes=_env_int("RESTART_ALERTS_COOLDOWN", 30, min_val=1, max_val=1440),
        ),
        notifications=NotificationConfig(
            group_id=_env("NOTIFICATIONS_GROUP_ID", ""),
            groups=_validate_groups(_env("NOTIFICATIONS_GROUPS", "")),
            email_secret_ref=_env("NOTIFICATIONS_EMAIL_SECRET_REF", ""),
            webhook_secret_ref=_env("NOTIFICATIONS_WEBHOOK_SECRET_REF", ""),
        ),
        metrics=MetricsConfig(
            port=_env_int("METRICS_PORT", 0, min_val=0, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
