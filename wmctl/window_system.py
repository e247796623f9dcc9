"""Window system collaborator interface.

The daemon never talks to a compositor directly. Everything it needs from the
window system goes through the abstract classes in this module:

- WindowHandle: per-window reads on one live window
- WindowSystem: enumeration, focus/workspace queries, mutations, event
  subscriptions and timestamps for one session

Backends declare which operations they provide through a fixed capability set
instead of being probed at runtime. Callers check ``supports()`` (or
``require()``) before using an optional primitive.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, List, Optional

from .errors import PrimitiveUnavailable

logger = logging.getLogger(__name__)

CONTRACT_VERSION = 1


class Capability(str, Enum):
    """Optional primitives a window system backend may provide."""

    NATIVE_XID = "native_xid"                  # cross-display numeric window id
    STABLE_SEQUENCE = "stable_sequence"        # creation-ordered sequence number
    INTERNAL_ID = "internal_id"                # backend-internal numeric id
    WM_CLASS = "wm_class"                      # native instance/class metadata
    APP_TRACKER = "app_tracker"                # window -> owning application id
    FRAME_RECT = "frame_rect"
    MINIMIZE = "minimize"
    ACTIVATE = "activate"
    MOVE_RESIZE = "move_resize"
    CHANGE_WORKSPACE = "change_workspace"
    ACTIVATE_WORKSPACE = "activate_workspace"
    EVENT_TIME = "event_time"                  # window system event timestamps
    WINDOW_EVENTS = "window_events"            # window-created notifications
    CLASS_EVENTS = "class_events"              # per-window class-changed notifications
    MONITOR_GEOMETRY = "monitor_geometry"


class WindowType(Enum):
    """Window types relevant to taskbar eligibility."""

    NORMAL = "normal"
    DIALOG = "dialog"
    UTILITY = "utility"
    DOCK = "dock"
    DESKTOP = "desktop"
    OTHER = "other"


@dataclass(frozen=True)
class Rect:
    """Frame or monitor rectangle in layout coordinates."""

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class Workspace:
    """A live workspace resolved by its zero-based index."""

    index: int
    name: str = ""


class WindowHandle(ABC):
    """Per-window reads on one live window.

    Any of these may raise when the window disappears between calls; callers
    decide how to degrade.
    """

    @abstractmethod
    def get_xwindow(self) -> Optional[int]:
        """Native cross-display window id, or None/0 when not exposed."""

    @abstractmethod
    def get_stable_sequence(self) -> Optional[int]:
        """Sequence number assigned at creation, or None/0."""

    def get_internal_id(self) -> Optional[int]:
        """Backend-internal numeric id, when distinct from the sequence."""
        return None

    @abstractmethod
    def get_wm_class_instance(self) -> Optional[str]:
        """Instance half of the native class metadata."""

    @abstractmethod
    def get_wm_class(self) -> Optional[str]:
        """Class half of the native class metadata."""

    @abstractmethod
    def get_title(self) -> Optional[str]:
        """Current display title."""

    @abstractmethod
    def get_frame_rect(self) -> Optional[Rect]:
        """Frame rectangle including decorations."""

    @abstractmethod
    def is_minimized(self) -> bool:
        """True if the window is minimized (hidden)."""

    @abstractmethod
    def is_on_all_workspaces(self) -> bool:
        """True if the window is pinned to every workspace."""

    @abstractmethod
    def get_window_type(self) -> WindowType:
        """Window type hint."""

    @abstractmethod
    def is_skip_taskbar(self) -> bool:
        """True if the window asked to be left out of task lists."""

    @abstractmethod
    def get_workspace_index(self) -> Optional[int]:
        """Zero-based index of the owning workspace, or None."""


class Subscription:
    """Handle for one event subscription.

    ``cancel()`` is idempotent so every exit path can release the subscription
    unconditionally.
    """

    def __init__(self, on_cancel: Callable[[], None], description: str = ""):
        self._on_cancel = on_cancel
        self.description = description
        self.active = True

    def cancel(self) -> None:
        """Release the subscription (no-op if already released)."""
        if not self.active:
            return
        self.active = False
        try:
            self._on_cancel()
        except Exception as e:
            logger.warning(f"Failed to release subscription {self.description}: {e}")

    def __repr__(self) -> str:
        state = "active" if self.active else "released"
        return f"<Subscription {self.description} {state}>"


WindowCallback = Callable[[WindowHandle], None]


class WindowSystem(ABC):
    """One window system session.

    Owned by the daemon; every service receives it explicitly.
    """

    contract_version: int = CONTRACT_VERSION

    @property
    @abstractmethod
    def capabilities(self) -> FrozenSet[Capability]:
        """Primitives this backend provides."""

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def require(self, capability: Capability) -> None:
        """Raise PrimitiveUnavailable unless the capability is provided."""
        if not self.supports(capability):
            raise PrimitiveUnavailable(capability)

    # Reads

    @abstractmethod
    async def list_windows(self) -> List[WindowHandle]:
        """Every window surface known to the window system."""

    @abstractmethod
    async def get_focus_window(self) -> Optional[WindowHandle]:
        """Currently focused window, or None."""

    def lookup_app_id(self, handle: WindowHandle) -> Optional[str]:
        """Application id of the window's owning application (APP_TRACKER)."""
        return None

    @abstractmethod
    async def get_active_workspace_index(self) -> int:
        """Zero-based index of the active workspace."""

    @abstractmethod
    async def get_workspace_by_index(self, index: int) -> Optional[Workspace]:
        """Live workspace at ``index``, or None."""

    async def get_current_time(self) -> int:
        """Event timestamp from the window system (EVENT_TIME)."""
        raise PrimitiveUnavailable(Capability.EVENT_TIME)

    async def get_monitor_geometry(self) -> Optional[Rect]:
        """Geometry of the monitor holding the focus (MONITOR_GEOMETRY)."""
        raise PrimitiveUnavailable(Capability.MONITOR_GEOMETRY)

    # Mutations

    async def activate_window(self, handle: WindowHandle, timestamp: int) -> None:
        raise PrimitiveUnavailable(Capability.ACTIVATE)

    async def unminimize(self, handle: WindowHandle) -> None:
        raise PrimitiveUnavailable(Capability.MINIMIZE)

    async def move_resize_frame(
        self,
        handle: WindowHandle,
        user_op: bool,
        x: int,
        y: int,
        width: int,
        height: int,
    ) -> None:
        raise PrimitiveUnavailable(Capability.MOVE_RESIZE)

    async def change_workspace(self, handle: WindowHandle, workspace: Workspace) -> None:
        raise PrimitiveUnavailable(Capability.CHANGE_WORKSPACE)

    async def activate_workspace(self, workspace: Workspace, timestamp: int) -> None:
        raise PrimitiveUnavailable(Capability.ACTIVATE_WORKSPACE)

    # Events

    def subscribe_window_created(self, callback: WindowCallback) -> Subscription:
        """Call ``callback(handle)`` for every newly created window (WINDOW_EVENTS)."""
        raise PrimitiveUnavailable(Capability.WINDOW_EVENTS)

    def subscribe_class_changed(
        self, handle: WindowHandle, callback: WindowCallback
    ) -> Subscription:
        """Call ``callback(handle)`` when ``handle``'s class metadata changes (CLASS_EVENTS)."""
        raise PrimitiveUnavailable(Capability.CLASS_EVENTS)
