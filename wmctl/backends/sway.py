"""Sway/i3 window system backend over the i3 IPC protocol.

Mapping onto the collaborator interface:

- native id: ``con.window`` (X11 id, set for XWayland and i3 windows)
- stable sequence: ``con.id`` (container ids grow monotonically)
- instance/class: ``con.window_instance`` / ``con.window_class``
- application tracker: ``con.app_id`` (native Wayland clients)
- pinned: sticky containers; minimized: parked in the scratchpad
- workspaces: indexed by position in ``get_workspaces()`` ordered by number

Every command reply is checked; a failed reply raises CollaboratorError.
"""

import asyncio
import logging
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from i3ipc import Event, aio

from ..errors import CollaboratorError
from ..window_system import (
    Capability,
    Rect,
    Subscription,
    WindowCallback,
    WindowHandle,
    WindowSystem,
    WindowType,
    Workspace,
)

logger = logging.getLogger(__name__)

SCRATCHPAD_WORKSPACE = "__i3_scratch"

SWAY_CAPABILITIES: FrozenSet[Capability] = frozenset({
    Capability.NATIVE_XID,
    Capability.STABLE_SEQUENCE,
    Capability.WM_CLASS,
    Capability.APP_TRACKER,
    Capability.FRAME_RECT,
    Capability.MINIMIZE,
    Capability.ACTIVATE,
    Capability.MOVE_RESIZE,
    Capability.CHANGE_WORKSPACE,
    Capability.ACTIVATE_WORKSPACE,
    Capability.WINDOW_EVENTS,
    Capability.CLASS_EVENTS,
    Capability.MONITOR_GEOMETRY,
})

_WINDOW_TYPES = {
    "normal": WindowType.NORMAL,
    "dialog": WindowType.DIALOG,
    "utility": WindowType.UTILITY,
    "dock": WindowType.DOCK,
    "desktop": WindowType.DESKTOP,
}


def is_window(con) -> bool:
    """True for leaf containers that hold a client window."""
    if con is None or con.nodes:
        return False
    return bool(con.window or getattr(con, "app_id", None))


def workspace_order(workspaces: Sequence) -> List:
    """Workspaces in index order: numbered by number, then named by name."""
    return sorted(
        (ws for ws in workspaces if ws.name != SCRATCHPAD_WORKSPACE),
        key=lambda ws: (ws.num if ws.num is not None and ws.num >= 0 else float("inf"), ws.name),
    )


def _quote(name: str) -> str:
    return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'


class SwayWindowHandle(WindowHandle):
    """One container as seen in a tree or event payload."""

    def __init__(self, con, workspace_index: Optional[int] = None, minimized: bool = False):
        self.con = con
        self._workspace_index = workspace_index
        self._minimized = minimized

    @property
    def con_id(self) -> int:
        return self.con.id

    def get_xwindow(self) -> Optional[int]:
        return self.con.window or None

    def get_stable_sequence(self) -> Optional[int]:
        return self.con.id

    def get_wm_class_instance(self) -> Optional[str]:
        return self.con.window_instance

    def get_wm_class(self) -> Optional[str]:
        return self.con.window_class

    def get_app_id(self) -> Optional[str]:
        return getattr(self.con, "app_id", None)

    def get_title(self) -> Optional[str]:
        return self.con.name

    def get_frame_rect(self) -> Optional[Rect]:
        rect = self.con.rect
        if rect is None:
            return None
        return Rect(rect.x, rect.y, rect.width, rect.height)

    def is_minimized(self) -> bool:
        return self._minimized

    def is_on_all_workspaces(self) -> bool:
        return bool(self.con.ipc_data.get("sticky", False))

    def get_window_type(self) -> WindowType:
        return _WINDOW_TYPES.get(self.con.ipc_data.get("window_type") or "normal", WindowType.OTHER)

    def is_skip_taskbar(self) -> bool:
        # i3 IPC does not expose _NET_WM_STATE_SKIP_TASKBAR
        return False

    def get_workspace_index(self) -> Optional[int]:
        return self._workspace_index

    def __repr__(self) -> str:
        return f"SwayWindowHandle(con_id={self.con.id}, window={self.con.window})"


class SwayWindowSystem(WindowSystem):
    """WindowSystem implementation over an ``i3ipc.aio`` connection."""

    def __init__(self, conn: aio.Connection):
        self.conn = conn

    @property
    def capabilities(self) -> FrozenSet[Capability]:
        return SWAY_CAPABILITIES

    async def _command(self, command: str) -> None:
        """Run one IPC command and validate every reply."""
        try:
            replies = await self.conn.command(command)
        except Exception as e:
            raise CollaboratorError(f"IPC command failed: {command}: {e}", {"command": command})

        for reply in replies or []:
            if not reply.success:
                error = getattr(reply, "error", None) or "unknown error"
                raise CollaboratorError(f"{command}: {error}", {"command": command})
        logger.debug(f"IPC command ok: {command}")

    async def _workspaces(self) -> List:
        try:
            return workspace_order(await self.conn.get_workspaces())
        except Exception as e:
            raise CollaboratorError(f"Failed to read workspaces: {e}")

    async def _tree(self):
        try:
            return await self.conn.get_tree()
        except Exception as e:
            raise CollaboratorError(f"Failed to read window tree: {e}")

    async def _layout(self) -> Tuple[object, Dict[str, int], int]:
        """Tree, workspace name -> index map, and active workspace index."""
        tree, workspaces = await asyncio.gather(self._tree(), self._workspaces())
        indices = {ws.name: index for index, ws in enumerate(workspaces)}
        active = next((index for index, ws in enumerate(workspaces) if ws.focused), 0)
        return tree, indices, active

    @staticmethod
    def _handle_in_tree(con, indices: Dict[str, int], active: int) -> SwayWindowHandle:
        workspace = con.workspace()
        if workspace is not None and workspace.name == SCRATCHPAD_WORKSPACE:
            # Showing a scratchpad window brings it to the current workspace
            return SwayWindowHandle(con, workspace_index=active, minimized=True)
        index = indices.get(workspace.name) if workspace is not None else None
        return SwayWindowHandle(con, workspace_index=index)

    # Reads

    async def list_windows(self) -> List[WindowHandle]:
        tree, indices, active = await self._layout()
        return [
            self._handle_in_tree(con, indices, active)
            for con in tree.descendants()
            if is_window(con)
        ]

    async def get_focus_window(self) -> Optional[WindowHandle]:
        tree, indices, active = await self._layout()
        focused = tree.find_focused()
        if not is_window(focused):
            return None
        return self._handle_in_tree(focused, indices, active)

    def lookup_app_id(self, handle: WindowHandle) -> Optional[str]:
        if isinstance(handle, SwayWindowHandle):
            return handle.get_app_id()
        return None

    async def get_active_workspace_index(self) -> int:
        workspaces = await self._workspaces()
        return next((index for index, ws in enumerate(workspaces) if ws.focused), 0)

    async def get_workspace_by_index(self, index: int) -> Optional[Workspace]:
        workspaces = await self._workspaces()
        if 0 <= index < len(workspaces):
            return Workspace(index, workspaces[index].name)
        return None

    async def get_monitor_geometry(self) -> Optional[Rect]:
        workspaces = await self._workspaces()
        focused = next((ws for ws in workspaces if ws.focused), None)
        if focused is None:
            return None
        try:
            outputs = await self.conn.get_outputs()
        except Exception as e:
            raise CollaboratorError(f"Failed to read outputs: {e}")
        for output in outputs:
            if output.name == focused.output:
                rect = output.rect
                return Rect(rect.x, rect.y, rect.width, rect.height)
        return None

    # Mutations

    async def activate_window(self, handle: WindowHandle, timestamp: int) -> None:
        await self._command(f"[con_id={handle.con_id}] focus")

    async def unminimize(self, handle: WindowHandle) -> None:
        await self._command(f"[con_id={handle.con_id}] scratchpad show")

    async def move_resize_frame(
        self,
        handle: WindowHandle,
        user_op: bool,
        x: int,
        y: int,
        width: int,
        height: int,
    ) -> None:
        # Only floating containers keep an explicit frame position; con.rect is in
        # layout (absolute) coordinates, plain "move position" is output-relative
        await self._command(
            f"[con_id={handle.con_id}] floating enable, "
            f"resize set {width} px {height} px, move absolute position {x} px {y} px"
        )

    async def change_workspace(self, handle: WindowHandle, workspace: Workspace) -> None:
        await self._command(
            f"[con_id={handle.con_id}] move container to workspace {_quote(workspace.name)}"
        )

    async def activate_workspace(self, workspace: Workspace, timestamp: int) -> None:
        await self._command(f"workspace {_quote(workspace.name)}")

    # Events

    def subscribe_window_created(self, callback: WindowCallback) -> Subscription:
        def on_window_new(conn, event) -> None:
            con = event.container
            if is_window(con):
                callback(SwayWindowHandle(con))

        self.conn.on(Event.WINDOW_NEW, on_window_new)
        return Subscription(lambda: self.conn.off(on_window_new), "window::new")

    def subscribe_class_changed(self, handle: WindowHandle, callback: WindowCallback) -> Subscription:
        # i3 IPC has no class-change event; property updates arrive as window::title
        con_id = handle.con_id

        def on_window_title(conn, event) -> None:
            con = event.container
            if con is not None and con.id == con_id:
                callback(SwayWindowHandle(con))

        self.conn.on(Event.WINDOW_TITLE, on_window_title)
        return Subscription(lambda: self.conn.off(on_window_title), f"window::title con_id={con_id}")

    def close(self) -> None:
        """Stop the connection's event loop integration."""
        try:
            self.conn.main_quit()
        except Exception as e:
            logger.error(f"Error closing window manager connection: {e}")


async def connect_with_retry(max_attempts: int = 10, initial_delay: float = 0.1) -> SwayWindowSystem:
    """Connect to Sway/i3 with exponential backoff retry.

    Args:
        max_attempts: Maximum connection attempts
        initial_delay: Delay before the second attempt, doubled up to 5s

    Returns:
        Connected SwayWindowSystem

    Raises:
        ConnectionError: If connection fails after max attempts
    """
    attempt = 0
    delay = initial_delay

    while attempt < max_attempts:
        try:
            logger.info(f"Attempting to connect to window manager (attempt {attempt + 1}/{max_attempts})")
            conn = await aio.Connection(auto_reconnect=True).connect()

            version = await conn.get_version()
            logger.info(f"Connected to window manager version {version.human_readable}")

            # Handlers registered later need the window event stream
            await conn.subscribe([Event.WINDOW])
            return SwayWindowSystem(conn)

        except Exception as e:
            logger.warning(f"Connection attempt {attempt + 1} failed: {e}")
            attempt += 1

            if attempt < max_attempts:
                logger.debug(f"Waiting {delay:.1f}s before retry...")
                await asyncio.sleep(delay)
                delay = min(delay * 2, 5.0)

    raise ConnectionError(f"Failed to connect to window manager after {max_attempts} attempts")
