"""Application bootstrap for KubePulse.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → K8s client → notifications → monitor
              → metrics endpoint

Shutdown is graceful: components are stopped in reverse startup order.
Each component's start/stop error is caught and logged independently so that
a single component failure does not prevent the rest from shutting down cleanly.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING, Any

from kubepulse.config import load_config
from kubepulse.models.config import KubePulseConfig
from kubepulse.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

    from kubepulse.collector.source import KubernetesSnapshotSource
    from kubepulse.monitor.engine import WorkloadMonitor
    from kubepulse.notifications.notifier import GroupNotifier

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class KubePulseApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    Calling ``stop()`` on an app that was never started (or already
    stopped) is safe.
    """

    def __init__(self) -> None:
        self.config: KubePulseConfig | None = None

        self._source: KubernetesSnapshotSource | None = None
        self._notifier: GroupNotifier | None = None
        self._monitor: WorkloadMonitor | None = None
        self._metrics_server: Any | None = None

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def monitor(self) -> WorkloadMonitor | None:
        return self._monitor

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        # --- 1. Configuration -------------------------------------------
        self.config = load_config()

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level, cluster_id=self.config.cluster_id)
        self._log = get_logger("app")
        self._log.info("kubepulse starting", version=_kubepulse_version())

        # --- 3. Kubernetes client ----------------------------------------
        await self._start_k8s_client()

        # --- 4. Notifications --------------------------------------------
        await self._start_notifications()

        # --- 5. Workload monitor -----------------------------------------
        await self._start_monitor()

        # --- 6. Metrics endpoint -----------------------------------------
        await self._start_metrics()

        self._running = True
        self._log.info(
            "kubepulse started",
            monitoring=self._monitor is not None and self._monitor.running,
        )

    # ------------------------------------------------------------------
    # Component startup helpers
    # ------------------------------------------------------------------

    async def _start_k8s_client(self) -> None:
        """Connect the snapshot source.

        Non-fatal: without a cluster the monitor stays in the
        "not configured" state and the process idles.
        """
        assert self._log is not None
        assert self.config is not None
        if not self.config.kubernetes.is_configured:
            self._log.warning("k8s client not configured; monitoring disabled")
            return

        self._log.debug("starting k8s client")
        from kubepulse.collector.source import KubernetesSnapshotSource

        source = KubernetesSnapshotSource(self.config.kubernetes)
        try:
            await source.connect()
        except Exception as exc:
            self._log.warning(
                "k8s client failed to start; monitoring disabled",
                error=str(exc),
            )
            await source.close()
            return
        self._source = source
        self._log.info("k8s client started")

    async def _start_notifications(self) -> None:
        """Build sinks and resolve the recipient group."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting notifications")
        try:
            from kubepulse.notifications import build_group_notifier

            notifier = build_group_notifier(self.config.notifications, cluster_id=self.config.cluster_id)
            self._notifier = notifier
            self._log.info("notifications started", enabled=notifier.enabled)
        except Exception as exc:
            # Notification failure is non-fatal: monitoring continues without delivery
            self._log.warning(
                "notifications failed to start; alerts will be suppressed",
                error=str(exc),
            )
            self._notifier = None

    async def _start_monitor(self) -> None:
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting workload monitor")
        try:
            from kubepulse.monitor.engine import WorkloadMonitor

            monitor = WorkloadMonitor(
                pod_source=self._source,
                node_source=self._source,
                notifier=self._notifier,
                config=self.config.monitor,
                restart_config=self.config.restart_alerts,
                fetch_timeout_seconds=self.config.kubernetes.fetch_timeout_seconds,
            )
            self._monitor = monitor
            if await monitor.start():
                self._log.info("workload monitor started")
            else:
                self._log.warning("workload monitor idle", configured=monitor.configured)
        except Exception as exc:
            raise _ComponentError("monitor", exc) from exc

    async def _start_metrics(self) -> None:
        """Expose Prometheus metrics when a port is configured."""
        assert self._log is not None
        assert self.config is not None
        port = self.config.metrics.port
        if port <= 0:
            self._log.info("metrics endpoint disabled")
            return
        try:
            from prometheus_client import start_http_server

            self._metrics_server = start_http_server(port)
            self._log.info("metrics endpoint started", port=port)
        except Exception as exc:
            raise _ComponentError("metrics", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("kubepulse shutting down")
        self._running = False

        self._stop_metrics()
        await self._stop_component("monitor", self._monitor)
        self._monitor = None
        self._notifier = None
        await self._stop_k8s_client()

        log.info("kubepulse stopped")

    async def _stop_component(self, name: str, component: object | None) -> None:
        """Call stop() on a component if it has that method, catching all errors."""
        if component is None:
            return
        log = self._log or get_logger("app")
        stop_fn = getattr(component, "stop", None)
        if stop_fn is None:
            return
        try:
            result = stop_fn()
            if asyncio.iscoroutine(result):
                await asyncio.wait_for(result, timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("component stop timed out", component=name, timeout=_SHUTDOWN_GRACE_SECONDS)
        except Exception as exc:
            log.error("component stop raised an error", component=name, error=str(exc))

    def _stop_metrics(self) -> None:
        if self._metrics_server is None:
            return
        log = self._log or get_logger("app")
        try:
            server, _thread = self._metrics_server
            server.shutdown()
        except Exception as exc:
            log.debug("metrics endpoint shutdown raised (non-fatal)", error=str(exc))
        finally:
            self._metrics_server = None

    async def _stop_k8s_client(self) -> None:
        if self._source is None:
            return
        await self._source.close()
        self._source = None


def _kubepulse_version() -> str:
    from kubepulse import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = KubePulseApp()
    loop = asyncio.get_running_loop()
    stopped = asyncio.Event()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stopped.set)

    try:
        await app.start()
        await stopped.wait()
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app.running:
            await app.stop()


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())
