"""Configuration loader for the wmctl daemon.

Loads the service configuration from JSON and watches the file so edits take
effect without a restart.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError
from watchdog.events import FileModifiedEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .models.config import ServiceConfig

logger = logging.getLogger(__name__)


def load_service_config(config_file: Path) -> ServiceConfig:
    """Load the service configuration from a JSON file.

    A missing file gives the defaults. An unreadable or invalid file is logged
    and also gives the defaults, so the daemon always starts.

    Args:
        config_file: Path to config.json

    Returns:
        ServiceConfig instance
    """
    if not config_file.exists():
        logger.info(f"Config file does not exist: {config_file}, using defaults")
        return ServiceConfig()

    try:
        with open(config_file) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read config file {config_file}: {e}")
        return ServiceConfig()

    if not isinstance(data, dict):
        logger.error(f"Config file {config_file} must contain a JSON object, using defaults")
        return ServiceConfig()

    try:
        config = ServiceConfig(**data)
    except ValidationError as e:
        logger.error(f"Invalid config in {config_file}: {e}")
        return ServiceConfig()

    logger.info(f"Loaded config from {config_file}")
    return config


class DebouncedReloadHandler(FileSystemEventHandler):
    """File system event handler with debounced reload callback.

    Debounces rapid file modifications (e.g., editor save sequences)
    to prevent excessive reload operations. Watchdog delivers events on its
    own thread; the callback always runs on the event loop.
    """

    def __init__(self, callback: Callable[[], None], debounce_ms: int = 100, target_filename: Optional[str] = None):
        """Initialize debounced reload handler.

        Args:
            callback: Function to call after debounce period
            debounce_ms: Debounce timeout in milliseconds (default: 100ms)
            target_filename: If set, only trigger on events for this filename
        """
        super().__init__()
        self.callback = callback
        self.debounce_seconds = debounce_ms / 1000
        self.target_filename = target_filename
        self._timer: Optional[asyncio.TimerHandle] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def set_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def _restart_timer(self) -> None:
        """Restart the debounce timer (runs on the event loop)."""
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._loop.call_later(self.debounce_seconds, self._fire)

    def _fire(self) -> None:
        self._timer = None
        try:
            self.callback()
        except Exception as e:
            logger.error(f"Config reload callback failed: {e}")

    def _schedule_callback(self) -> None:
        if self._loop is None:
            logger.warning("No event loop set for debounced handler, calling immediately")
            self.callback()
            return
        self._loop.call_soon_threadsafe(self._restart_timer)

    def _should_trigger(self, event) -> bool:
        """Check if event should trigger callback based on target filename filter."""
        if event.is_directory:
            return False
        if self.target_filename:
            event_path = getattr(event, "dest_path", None) or event.src_path
            return Path(event_path).name == self.target_filename
        return True

    def on_modified(self, event: FileModifiedEvent) -> None:
        if self._should_trigger(event):
            self._schedule_callback()

    def on_moved(self, event) -> None:
        """Atomic saves write a temp file and rename it over the target."""
        if self._should_trigger(event):
            self._schedule_callback()

    def on_created(self, event) -> None:
        if self._should_trigger(event):
            self._schedule_callback()

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class ConfigWatcher:
    """File system watcher for config.json with auto-reload.

    Uses watchdog library for cross-platform file monitoring and debounces
    rapid changes to prevent excessive reload operations.
    """

    def __init__(self, config_file: Path, reload_callback: Callable[[], None], debounce_ms: int = 100):
        """Initialize config file watcher.

        Args:
            config_file: Path to config.json
            reload_callback: Function to call after the file changed
            debounce_ms: Debounce timeout in milliseconds (default: 100ms)
        """
        self.config_file = config_file
        self.reload_callback = reload_callback
        self.observer = Observer()
        self.handler = DebouncedReloadHandler(
            reload_callback, debounce_ms, target_filename=config_file.name
        )
        self._started = False

    def set_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self.handler.set_event_loop(loop)

    def start(self) -> None:
        """Start watching the config file for modifications.

        Watches the parent directory since some editors use atomic save
        (create temp file + rename) which doesn't trigger inotify on the file itself.
        """
        if self._started:
            logger.warning("Config watcher already started")
            return

        watch_dir = self.config_file.parent
        watch_dir.mkdir(parents=True, exist_ok=True)

        self.observer.schedule(self.handler, str(watch_dir), recursive=False)
        self.observer.start()
        self._started = True

        logger.info(f"Started watching {self.config_file} for modifications")

    def stop(self) -> None:
        """Stop watching for file modifications."""
        if not self._started:
            return

        self.handler.cancel()
        self.observer.stop()
        self.observer.join(timeout=5.0)
        self._started = False

        logger.info("Stopped watching config file")
