"""Launch tracking state models."""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..window_system import Subscription


class LaunchState(Enum):
    """States of one in-flight launch."""
    SPAWNED = "spawned"
    WATCHING = "watching"
    SUB_WATCHING = "sub_watching"  # Waiting for a candidate's class to settle
    MATCHED = "matched"
    SUB_TIMED_OUT = "sub_timed_out"
    OUTER_TIMED_OUT = "outer_timed_out"
    CANCELLED = "cancelled"  # Daemon shutdown

    @property
    def is_terminal(self) -> bool:
        return self in (LaunchState.MATCHED, LaunchState.OUTER_TIMED_OUT, LaunchState.CANCELLED)


@dataclass
class ClassWatch:
    """Class-change watch on one candidate window."""
    window_id: str
    subscription: Subscription
    timer: Optional[asyncio.TimerHandle] = None

    def release(self) -> None:
        self.subscription.cancel()
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


@dataclass
class LaunchWatch:
    """Watcher state owned by the launch tracker for one launch."""
    launch_id: int
    command: str
    expected_class: str
    threshold_order_key: int
    is_terminal_launch: bool = False
    state: LaunchState = LaunchState.SPAWNED
    pid: Optional[int] = None
    created_subscription: Optional[Subscription] = None
    outer_timer: Optional[asyncio.TimerHandle] = None
    class_watches: Dict[str, ClassWatch] = field(default_factory=dict)
    matched_window_id: Optional[str] = None
    started_at: float = field(default_factory=time.time)

    @property
    def finished(self) -> bool:
        return self.state.is_terminal

    def release_class_watch(self, window_id: str) -> None:
        watch = self.class_watches.pop(window_id, None)
        if watch is not None:
            watch.release()

    def release_all(self) -> None:
        """Release every subscription and timer this launch holds."""
        if self.created_subscription is not None:
            self.created_subscription.cancel()
        if self.outer_timer is not None:
            self.outer_timer.cancel()
            self.outer_timer = None
        for window_id in list(self.class_watches):
            self.release_class_watch(window_id)

    def age(self, now: Optional[float] = None) -> float:
        return (now or time.time()) - self.started_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "launch_id": self.launch_id,
            "command": self.command,
            "expected_class": self.expected_class,
            "threshold_order_key": self.threshold_order_key,
            "state": self.state.value,
            "pid": self.pid,
            "pending_class_watches": sorted(self.class_watches),
            "matched_window_id": self.matched_window_id,
            "age": round(self.age(), 3),
        }


@dataclass
class LaunchStats:
    """Launch tracker counters for diagnostics."""
    in_flight: int
    total_launched: int
    total_matched: int
    total_timed_out: int
    total_spawn_failures: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "in_flight": self.in_flight,
            "total_launched": self.total_launched,
            "total_matched": self.total_matched,
            "total_timed_out": self.total_timed_out,
            "total_spawn_failures": self.total_spawn_failures,
        }
