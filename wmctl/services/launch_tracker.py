"""Launch tracker: spawn a command and place the window it opens.

Each launch owns one LaunchWatch:

    SPAWNED -> WATCHING -> MATCHED
                        -> SUB_WATCHING -> MATCHED | SUB_TIMED_OUT
                        -> OUTER_TIMED_OUT

Only windows created after the spawn (order key above the highest key seen
before spawning) are candidates. A candidate whose class is not set yet gets
a class-change watch with its own sub-timeout. The first match releases every
subscription and timer of the launch before any other candidate is looked at.

Launching is fire-and-forget: the caller learns whether the spawn worked,
never whether a window showed up.
"""

import asyncio
import dataclasses
import itertools
import logging
import os
import shlex
import subprocess
from functools import partial
from typing import Any, Dict, List, Optional, Set

from ..errors import SpawnError
from ..models.config import ServiceConfig
from ..models.launch import ClassWatch, LaunchState, LaunchStats, LaunchWatch
from ..models.results import OperationResult, Outcome
from ..models.window import WindowRecord
from ..window_system import Capability, WindowHandle, WindowSystem
from .window_classifier import match_app_id
from .window_control import WindowControl
from .window_registry import WindowRegistry

logger = logging.getLogger(__name__)


class ProcessSpawner:
    """Starts detached child processes."""

    def __init__(self) -> None:
        self._children: List[subprocess.Popen] = []

    def spawn(self, command: str) -> int:
        """Start ``command`` detached from the daemon.

        Args:
            command: Command line (shell-style quoting, no shell features)

        Returns:
            PID of the child

        Raises:
            SpawnError: If the command is empty or cannot be executed
        """
        self._reap()
        try:
            argv = shlex.split(command)
        except ValueError as e:
            raise SpawnError(f"Cannot parse command {command!r}: {e}")
        if not argv:
            raise SpawnError("Empty command")

        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,  # Detach from parent
            )
        except OSError as e:
            raise SpawnError(f"Failed to spawn {argv[0]}: {e}", {"errno": e.errno})

        self._children.append(process)
        return process.pid

    def _reap(self) -> None:
        """Collect exit status of finished children."""
        self._children = [p for p in self._children if p.poll() is None]


class LaunchTracker:
    """Spawns commands and waits for their windows."""

    def __init__(
        self,
        window_system: WindowSystem,
        registry: WindowRegistry,
        control: WindowControl,
        config: ServiceConfig,
        spawner: Optional[Any] = None,
    ):
        """
        Initialize launch tracker.

        Args:
            window_system: Window system session providing events
            registry: Registry used for thresholds and records
            control: Control operations used for post-launch placement
            config: Timeouts, terminal commands and placement fractions
            spawner: Object with ``spawn(command) -> pid`` (default: ProcessSpawner)
        """
        self.window_system = window_system
        self.registry = registry
        self.control = control
        self.config = config
        self.spawner = spawner or ProcessSpawner()

        self._watches: Dict[int, LaunchWatch] = {}
        self._ids = itertools.count(1)
        self._tasks: Set[asyncio.Task] = set()
        self._placement_timers: Set[asyncio.TimerHandle] = set()

        # Statistics counters
        self._total_launched = 0
        self._total_matched = 0
        self._total_timed_out = 0
        self._total_spawn_failures = 0

    def is_terminal_command(self, command: str) -> bool:
        """True if ``command`` starts with a known terminal launch path."""
        try:
            argv = shlex.split(command)
        except ValueError:
            return False
        if not argv:
            return False
        program = argv[0]
        base = os.path.basename(program)
        return any(program == known or base == known for known in self.config.terminal_commands)

    async def _threshold_order_key(self) -> int:
        """Highest order key among the windows that exist right now."""
        try:
            records = await self.registry.snapshot()
        except Exception as e:
            logger.warning(f"Failed to snapshot windows before launch, threshold=0: {e}")
            return 0
        return max((r.order_key for r in records), default=0)

    async def launch(self, command: str, expected_class: str) -> OperationResult:
        """Spawn ``command`` and watch for a window of class ``expected_class``.

        Returns:
            Success once the spawn succeeded; the match happens later
        """
        command = (command or "").strip()
        expected = (expected_class or "").strip().lower()
        if not command or not expected:
            return OperationResult.failure(Outcome.INVALID_ARGUMENT, "Command and app id are required")

        loop = asyncio.get_running_loop()
        threshold = await self._threshold_order_key()

        watch = LaunchWatch(
            launch_id=next(self._ids),
            command=command,
            expected_class=expected,
            threshold_order_key=threshold,
            is_terminal_launch=self.is_terminal_command(command),
        )

        try:
            watch.pid = self.spawner.spawn(command)
        except Exception as e:
            self._total_spawn_failures += 1
            logger.error(f"Launch {watch.launch_id}: spawn of {command!r} failed: {e}")
            return OperationResult.failure(Outcome.FAILED, f"Spawn failed: {e}")

        self._total_launched += 1
        logger.info(
            f"Launch {watch.launch_id}: spawned {command!r} (pid={watch.pid}, "
            f"expected_class={expected}, threshold={threshold})"
        )

        if not self.window_system.supports(Capability.WINDOW_EVENTS):
            logger.warning(f"Launch {watch.launch_id}: window system has no creation events, not tracking")
            return OperationResult.success(f"Spawned {command}")

        try:
            watch.created_subscription = self.window_system.subscribe_window_created(
                partial(self._on_window_created, watch)
            )
        except Exception as e:
            logger.error(f"Launch {watch.launch_id}: cannot watch for new windows: {e}")
            return OperationResult.success(f"Spawned {command}")

        watch.outer_timer = loop.call_later(self.config.launch_timeout, self._on_outer_timeout, watch)
        watch.state = LaunchState.WATCHING
        self._watches[watch.launch_id] = watch
        return OperationResult.success(f"Spawned {command}")

    def _matches(self, watch: LaunchWatch, handle: WindowHandle) -> bool:
        instance, cls = self.registry.classifier.classify_parts(handle)
        matched, match_type = match_app_id(watch.expected_class, instance, cls)
        if matched:
            logger.debug(f"Launch {watch.launch_id}: {instance}.{cls} matched via {match_type}")
        return matched

    def _on_window_created(self, watch: LaunchWatch, handle: WindowHandle) -> None:
        if watch.finished:
            return

        order_key = self.registry.identifier.resolve_order_key(handle)
        if order_key <= watch.threshold_order_key:
            logger.debug(
                f"Launch {watch.launch_id}: ignoring pre-existing window "
                f"(order_key={order_key} <= {watch.threshold_order_key})"
            )
            return

        window_id = self.registry.identifier.resolve_id(handle)
        if self._matches(watch, handle):
            self._complete(watch, handle, window_id)
            return

        if window_id in watch.class_watches:
            return
        if not self.window_system.supports(Capability.CLASS_EVENTS):
            logger.debug(f"Launch {watch.launch_id}: window {window_id} does not match, no class events")
            return

        try:
            subscription = self.window_system.subscribe_class_changed(
                handle, partial(self._on_class_changed, watch, window_id)
            )
        except Exception as e:
            logger.warning(f"Launch {watch.launch_id}: cannot watch class of {window_id}: {e}")
            return

        loop = asyncio.get_running_loop()
        timer = loop.call_later(
            self.config.class_change_timeout, self._on_class_timeout, watch, window_id
        )
        watch.class_watches[window_id] = ClassWatch(window_id, subscription, timer)
        watch.state = LaunchState.SUB_WATCHING
        logger.debug(f"Launch {watch.launch_id}: waiting for class change of {window_id}")

    def _on_class_changed(self, watch: LaunchWatch, window_id: str, handle: WindowHandle) -> None:
        if watch.finished or window_id not in watch.class_watches:
            return
        if self._matches(watch, handle):
            self._complete(watch, handle, window_id)

    def _on_class_timeout(self, watch: LaunchWatch, window_id: str) -> None:
        class_watch = watch.class_watches.get(window_id)
        if class_watch is None or watch.finished:
            return
        class_watch.timer = None
        watch.release_class_watch(window_id)
        if not watch.class_watches:
            watch.state = LaunchState.SUB_TIMED_OUT
        logger.debug(f"Launch {watch.launch_id}: class of {window_id} never matched")

    def _on_outer_timeout(self, watch: LaunchWatch) -> None:
        watch.outer_timer = None
        if watch.finished:
            return
        watch.state = LaunchState.OUTER_TIMED_OUT
        watch.release_all()
        self._watches.pop(watch.launch_id, None)
        self._total_timed_out += 1
        logger.info(
            f"Launch {watch.launch_id}: no {watch.expected_class} window within "
            f"{self.config.launch_timeout:.1f}s, giving up"
        )

    def _complete(self, watch: LaunchWatch, handle: WindowHandle, window_id: str) -> None:
        """Terminal match: release everything first, then place the window."""
        watch.state = LaunchState.MATCHED
        watch.matched_window_id = window_id
        watch.release_all()
        self._watches.pop(watch.launch_id, None)
        self._total_matched += 1
        logger.info(f"Launch {watch.launch_id}: matched window {window_id} after {watch.age():.2f}s")
        self._start_task(self._apply_post_launch(watch, handle))

    def _start_task(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _apply_post_launch(self, watch: LaunchWatch, handle: WindowHandle) -> None:
        """Bring the launched window to the active workspace, focus it, size terminals."""
        try:
            # Event handles may lack tree context (workspace); prefer the live record
            snapshot = await self.registry.snapshot()
            record = self.registry.find_in(snapshot, watch.matched_window_id)
            if record is None:
                record = self.registry.build_record(handle)
            active_index = await self.registry.active_workspace_index()

            if not record.is_pinned and record.workspace_index != active_index:
                workspace = await self.window_system.get_workspace_by_index(active_index)
                if workspace is not None:
                    moved = await self.control.move_record_to_workspace(record, workspace)
                    if moved:
                        record = dataclasses.replace(record, workspace_index=active_index)

            await self.control.activate_record(record)

            if watch.is_terminal_launch:
                loop = asyncio.get_running_loop()
                timer: Optional[asyncio.TimerHandle] = None

                def fire() -> None:
                    self._placement_timers.discard(timer)
                    self._start_task(self._place_terminal(record))

                timer = loop.call_later(self.config.terminal_settle_delay, fire)
                self._placement_timers.add(timer)
        except Exception as e:
            logger.error(f"Launch {watch.launch_id}: post-launch placement failed: {e}")

    async def _place_terminal(self, record: WindowRecord) -> None:
        """Resize a new terminal to a fraction of the current monitor."""
        try:
            self.window_system.require(Capability.MONITOR_GEOMETRY)
            geometry = await self.window_system.get_monitor_geometry()
            if geometry is None:
                logger.debug(f"No monitor geometry for terminal {record.id}")
                return
            width = int(geometry.width * self.config.terminal_width_fraction)
            height = int(geometry.height * self.config.terminal_height_fraction)
            await self.control.resize_record(record, width, height)
        except Exception as e:
            logger.warning(f"Terminal placement for {record.id} failed: {e}")

    async def shutdown(self) -> None:
        """Release every in-flight watch and pending placement (daemon stop)."""
        for watch in list(self._watches.values()):
            watch.state = LaunchState.CANCELLED
            watch.release_all()
        self._watches.clear()

        for timer in list(self._placement_timers):
            timer.cancel()
        self._placement_timers.clear()

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Launch tracker stopped")

    async def drain(self) -> None:
        """Wait for running post-launch tasks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def get_stats(self) -> LaunchStats:
        return LaunchStats(
            in_flight=len(self._watches),
            total_launched=self._total_launched,
            total_matched=self._total_matched,
            total_timed_out=self._total_timed_out,
            total_spawn_failures=self._total_spawn_failures,
        )

    def get_pending_launches(self) -> List[Dict[str, Any]]:
        """In-flight launches for debugging."""
        return [watch.to_dict() for watch in self._watches.values()]
