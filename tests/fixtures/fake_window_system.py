"""In-memory window system for tests.

FakeWindow mirrors one client window; FakeWindowSystem keeps a list of them,
records every mutation in ``calls`` and lets tests fire creation and
class-change events by hand.
"""

import itertools
from typing import Dict, FrozenSet, List, Optional

from wmctl.window_system import (
    Capability,
    Rect,
    Subscription,
    WindowCallback,
    WindowHandle,
    WindowSystem,
    WindowType,
    Workspace,
)

ALL_CAPABILITIES: FrozenSet[Capability] = frozenset(Capability)

_sequence = itertools.count(100)


class FakeWindow(WindowHandle):
    """Scriptable window handle."""

    def __init__(
        self,
        instance: Optional[str] = "app",
        cls: Optional[str] = "App",
        title: str = "",
        workspace: Optional[int] = 0,
        xid: Optional[int] = None,
        seq: Optional[int] = None,
        internal_id: Optional[int] = None,
        pinned: bool = False,
        minimized: bool = False,
        window_type: WindowType = WindowType.NORMAL,
        skip_taskbar: bool = False,
        rect: Optional[Rect] = None,
        app_id: Optional[str] = None,
    ):
        self.instance = instance
        self.cls = cls
        self.title = title
        self.workspace = workspace
        self.xid = xid
        self.seq = seq if seq is not None else next(_sequence)
        self.internal_id = internal_id
        self.pinned = pinned
        self.minimized = minimized
        self.window_type = window_type
        self.skip_taskbar = skip_taskbar
        self.rect = rect if rect is not None else Rect(10, 20, 640, 480)
        self.app_id = app_id
        self.gone = False

    def _check(self) -> None:
        if self.gone:
            raise RuntimeError("window destroyed")

    def get_xwindow(self) -> Optional[int]:
        self._check()
        return self.xid

    def get_stable_sequence(self) -> Optional[int]:
        self._check()
        return self.seq

    def get_internal_id(self) -> Optional[int]:
        return self.internal_id

    def get_wm_class_instance(self) -> Optional[str]:
        self._check()
        return self.instance

    def get_wm_class(self) -> Optional[str]:
        self._check()
        return self.cls

    def get_title(self) -> Optional[str]:
        self._check()
        return self.title

    def get_frame_rect(self) -> Optional[Rect]:
        return self.rect

    def is_minimized(self) -> bool:
        return self.minimized

    def is_on_all_workspaces(self) -> bool:
        return self.pinned

    def get_window_type(self) -> WindowType:
        return self.window_type

    def is_skip_taskbar(self) -> bool:
        return self.skip_taskbar

    def get_workspace_index(self) -> Optional[int]:
        return self.workspace

    def __repr__(self) -> str:
        return f"FakeWindow({self.instance}.{self.cls} seq={self.seq} ws={self.workspace})"


class FakeWindowSystem(WindowSystem):
    """WindowSystem over a plain list of FakeWindow objects."""

    def __init__(
        self,
        windows: Optional[List[FakeWindow]] = None,
        capabilities: FrozenSet[Capability] = ALL_CAPABILITIES,
        active_workspace: int = 0,
        workspace_count: int = 4,
        focus: Optional[FakeWindow] = None,
        monitor: Optional[Rect] = None,
        time: int = 12345,
    ):
        self.windows: List[FakeWindow] = list(windows or [])
        self._capabilities = frozenset(capabilities)
        self.active_workspace = active_workspace
        self.workspace_count = workspace_count
        self.focus = focus
        self.monitor = monitor if monitor is not None else Rect(0, 0, 1920, 1080)
        self.time = time

        self.calls: List[tuple] = []
        self.fail: Dict[str, Exception] = {}
        self.created_callbacks: List[WindowCallback] = []
        self.class_callbacks: Dict[int, List[WindowCallback]] = {}

    @property
    def capabilities(self) -> FrozenSet[Capability]:
        return self._capabilities

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail:
            raise self.fail[name]

    @property
    def mutations(self) -> List[tuple]:
        return [c for c in self.calls if c[0] != "list_windows"]

    # Reads

    async def list_windows(self) -> List[WindowHandle]:
        self._maybe_fail("list_windows")
        self.calls.append(("list_windows",))
        return list(self.windows)

    async def get_focus_window(self) -> Optional[WindowHandle]:
        self._maybe_fail("get_focus_window")
        return self.focus

    def lookup_app_id(self, handle: WindowHandle) -> Optional[str]:
        return getattr(handle, "app_id", None)

    async def get_active_workspace_index(self) -> int:
        self._maybe_fail("get_active_workspace_index")
        return self.active_workspace

    async def get_workspace_by_index(self, index: int) -> Optional[Workspace]:
        if 0 <= index < self.workspace_count:
            return Workspace(index, str(index + 1))
        return None

    async def get_current_time(self) -> int:
        self.require(Capability.EVENT_TIME)
        return self.time

    async def get_monitor_geometry(self) -> Optional[Rect]:
        self.require(Capability.MONITOR_GEOMETRY)
        return self.monitor

    # Mutations

    async def activate_window(self, handle: WindowHandle, timestamp: int) -> None:
        self._maybe_fail("activate_window")
        self.calls.append(("activate_window", handle, timestamp))
        self.focus = handle

    async def unminimize(self, handle: WindowHandle) -> None:
        self._maybe_fail("unminimize")
        self.calls.append(("unminimize", handle))
        handle.minimized = False

    async def move_resize_frame(self, handle, user_op, x, y, width, height) -> None:
        self._maybe_fail("move_resize_frame")
        self.calls.append(("move_resize_frame", handle, user_op, x, y, width, height))
        handle.rect = Rect(x, y, width, height)

    async def change_workspace(self, handle: WindowHandle, workspace: Workspace) -> None:
        self._maybe_fail("change_workspace")
        self.calls.append(("change_workspace", handle, workspace.index))
        handle.workspace = workspace.index

    async def activate_workspace(self, workspace: Workspace, timestamp: int) -> None:
        self._maybe_fail("activate_workspace")
        self.calls.append(("activate_workspace", workspace.index, timestamp))
        self.active_workspace = workspace.index

    # Events

    def subscribe_window_created(self, callback: WindowCallback) -> Subscription:
        self.require(Capability.WINDOW_EVENTS)
        self.created_callbacks.append(callback)
        return Subscription(lambda: self.created_callbacks.remove(callback), "created")

    def subscribe_class_changed(self, handle: WindowHandle, callback: WindowCallback) -> Subscription:
        self.require(Capability.CLASS_EVENTS)
        callbacks = self.class_callbacks.setdefault(id(handle), [])
        callbacks.append(callback)
        return Subscription(lambda: callbacks.remove(callback), f"class {handle!r}")

    # Test helpers

    def open_window(self, window: FakeWindow) -> FakeWindow:
        """Add ``window`` and notify creation subscribers."""
        self.windows.append(window)
        for callback in list(self.created_callbacks):
            callback(window)
        return window

    def change_class(self, window: FakeWindow, instance: str, cls: str) -> None:
        """Set ``window``'s class and notify its class subscribers."""
        window.instance = instance
        window.cls = cls
        for callback in list(self.class_callbacks.get(id(window), [])):
            callback(window)

    @property
    def class_subscriber_count(self) -> int:
        return sum(len(v) for v in self.class_callbacks.values())

    def calls_named(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]


def make_windows(*specs, **common) -> List[FakeWindow]:
    """Build windows from (instance, cls, workspace) tuples with rising sequence numbers."""
    return [FakeWindow(instance=i, cls=c, workspace=w, title=f"{c} {n}", **common) for n, (i, c, w) in enumerate(specs)]


