"""Main daemon entry point with systemd integration.

This module provides the main event loop and systemd integration
(sd_notify, watchdog, journald logging).
"""

import asyncio
import contextlib
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Optional

try:
    from systemd import journal, daemon as sd_daemon
    SYSTEMD_AVAILABLE = True
except ImportError:
    SYSTEMD_AVAILABLE = False
    print("Warning: systemd-python not available, running without systemd integration", file=sys.stderr)

from .backends.sway import SwayWindowSystem, connect_with_retry
from .config import ConfigWatcher, load_service_config
from .constants import ConfigPaths
from .ipc_server import IPCServer
from .models.config import ServiceConfig
from .services.window_service import WindowService

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def _suppress_stderr_fd():
    """Suppress stderr at the file descriptor level.

    systemd-python writes directly to file descriptor 2, bypassing sys.stderr.
    """
    stderr_fd = sys.stderr.fileno()
    saved_stderr_fd = os.dup(stderr_fd)

    devnull_fd = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull_fd, stderr_fd)
    os.close(devnull_fd)

    try:
        yield
    finally:
        os.dup2(saved_stderr_fd, stderr_fd)
        os.close(saved_stderr_fd)


class DaemonHealthMonitor:
    """Manages systemd health notifications and watchdog pings."""

    def __init__(self) -> None:
        self.watchdog_interval: Optional[float] = None
        self._setup_watchdog()

    def _setup_watchdog(self) -> None:
        """Detect watchdog interval from systemd environment."""
        if not SYSTEMD_AVAILABLE:
            return

        watchdog_usec = os.environ.get("WATCHDOG_USEC")
        if watchdog_usec:
            # Ping at 1/3 of the timeout
            self.watchdog_interval = int(watchdog_usec) / 3_000_000
            logger.info(f"Systemd watchdog enabled: {self.watchdog_interval:.1f}s interval")
        else:
            logger.debug("Systemd watchdog not configured")

    def _notify(self, state: str) -> None:
        if SYSTEMD_AVAILABLE:
            with _suppress_stderr_fd():
                sd_daemon.notify(state)

    def notify_ready(self) -> None:
        """Send READY=1 signal to systemd."""
        if SYSTEMD_AVAILABLE:
            self._notify("READY=1")
            logger.info("Sent READY=1 to systemd")
        else:
            logger.debug("Systemd not available, skipping READY notification")

    def notify_watchdog(self) -> None:
        self._notify("WATCHDOG=1")

    def notify_stopping(self) -> None:
        """Send STOPPING=1 signal to systemd."""
        if SYSTEMD_AVAILABLE:
            self._notify("STOPPING=1")
            logger.info("Sent STOPPING=1 to systemd")

    async def watchdog_loop(self) -> None:
        """Background task that sends watchdog pings."""
        if not self.watchdog_interval:
            logger.debug("Watchdog not enabled, skipping watchdog loop")
            return

        while True:
            await asyncio.sleep(self.watchdog_interval)
            self.notify_watchdog()


class WmctlDaemon:
    """Main daemon class."""

    def __init__(self, config_file: Optional[Path] = None) -> None:
        self.config_file = config_file or ConfigPaths.CONFIG_FILE
        self.config: ServiceConfig = ServiceConfig()
        self.window_system: Optional[SwayWindowSystem] = None
        self.window_service: Optional[WindowService] = None
        self.ipc_server: Optional[IPCServer] = None
        self.config_watcher: Optional[ConfigWatcher] = None
        self.health_monitor: Optional[DaemonHealthMonitor] = None
        self.shutdown_event = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def _apply_log_level(self) -> None:
        """Config log level applies unless LOG_LEVEL is set."""
        if "LOG_LEVEL" not in os.environ:
            logging.getLogger().setLevel(self.config.log_level)

    def reload_config(self) -> None:
        """Re-read config.json and push it into the running services."""
        self.config = load_service_config(self.config_file)
        self._apply_log_level()
        if self.window_service:
            self.window_service.update_config(self.config)

    async def initialize(self) -> None:
        """Initialize daemon components."""
        logger.info("Initializing wmctl daemon...")
        self._loop = asyncio.get_running_loop()

        ConfigPaths.ensure_dirs()
        self.config = load_service_config(self.config_file)
        self._apply_log_level()

        self.health_monitor = DaemonHealthMonitor()

        self.window_system = await connect_with_retry()
        self.window_service = WindowService(self.window_system, self.config)

        socket_path = None if "WMCTL_SOCKET" in os.environ else self.config.socket_path
        self.ipc_server = await IPCServer.from_systemd_socket(self.window_service, socket_path)

        self.config_watcher = ConfigWatcher(self.config_file, self.reload_config)
        self.config_watcher.set_event_loop(self._loop)
        try:
            self.config_watcher.start()
        except Exception as e:
            logger.warning(f"Config watcher unavailable, edits need a restart: {e}")
            self.config_watcher = None

        logger.info("Daemon initialized")

    async def run(self) -> None:
        """Notify readiness and keep the watchdog alive until shutdown."""
        self.health_monitor.notify_ready()
        watchdog_task = asyncio.create_task(self.health_monitor.watchdog_loop())
        try:
            await self.shutdown_event.wait()
        finally:
            watchdog_task.cancel()
            try:
                await watchdog_task
            except asyncio.CancelledError:
                pass

    async def shutdown(self) -> None:
        """Graceful shutdown; every step is bounded by a timeout."""
        logger.info("Shutting down daemon...")

        if self.health_monitor:
            self.health_monitor.notify_stopping()

        if self.window_service:
            try:
                await asyncio.wait_for(self.window_service.shutdown(), timeout=2.0)
            except asyncio.TimeoutError:
                logger.warning("Launch tracker shutdown timed out after 2s (continuing)")
            except Exception as e:
                logger.error(f"Error stopping launch tracker: {e}")

        if self.config_watcher:
            try:
                self.config_watcher.stop()
            except Exception as e:
                logger.error(f"Error stopping config watcher: {e}")

        if self.ipc_server:
            try:
                await asyncio.wait_for(self.ipc_server.stop(), timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("IPC server shutdown timed out after 5s (continuing)")
            except Exception as e:
                logger.error(f"Error stopping IPC server: {e}")

        if self.window_system:
            self.window_system.close()
            logger.info("Window manager connection closed")

        logger.info("Daemon shutdown complete")

    def setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def shutdown_handler(signum, frame):
            logger.info(f"Received signal {signum}, initiating shutdown...")
            loop.call_soon_threadsafe(self.shutdown_event.set)

        signal.signal(signal.SIGTERM, shutdown_handler)
        signal.signal(signal.SIGINT, shutdown_handler)


def setup_logging() -> None:
    """Setup logging to systemd journal or stderr."""
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if SYSTEMD_AVAILABLE:
        with _suppress_stderr_fd():
            handler = journal.JournalHandler(SYSLOG_IDENTIFIER="wmctl-daemon")
    else:
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(logging.Formatter("%(levelname)s [%(name)s] %(message)s"))
    root_logger.addHandler(handler)

    logger.info(f"Logging configured: level={log_level}")


async def main_async() -> int:
    """Async main function.

    Returns:
        Exit code (0 = success, non-zero = error)
    """
    daemon = WmctlDaemon()

    try:
        daemon.setup_signal_handlers()
        await daemon.initialize()
        await daemon.run()
        return 0

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    finally:
        await daemon.shutdown()


def main() -> None:
    """Main entry point."""
    setup_logging()

    logger.info("wmctl daemon starting...")
    logger.info(f"PID: {os.getpid()}")

    try:
        exit_code = asyncio.run(main_async())
        sys.exit(exit_code)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)

    except Exception as e:
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
