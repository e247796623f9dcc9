"""Window control operations: activate, resize, move and workspace switching.

Every public operation validates its inputs, locates the target through a
fresh registry snapshot and performs one mutation. Failures come back as
OperationResult values; nothing raises past these methods.
"""

import logging
import time
from typing import Tuple

from ..errors import InvalidArgument, PrimitiveUnavailable, UnresolvableReference
from ..models.results import FocusByClassCode, OperationResult, Outcome
from ..models.window import WindowRecord
from ..window_system import Capability, Workspace, WindowSystem
from .window_registry import WindowRegistry

logger = logging.getLogger(__name__)


def fallback_timestamp() -> int:
    """Millisecond clock in the 32-bit range used by window system event times."""
    return int(time.monotonic() * 1000) & 0xFFFFFFFF


def validate_size(width, height) -> Tuple[int, int]:
    """Both dimensions as positive integers, or InvalidArgument."""
    try:
        width, height = int(width), int(height)
    except (TypeError, ValueError):
        raise InvalidArgument("Dimensions must be integers", {"width": width, "height": height})
    if not (width > 0 and height > 0):
        raise InvalidArgument(f"Invalid size {width}x{height}", {"width": width, "height": height})
    return width, height


def validate_workspace_index(index) -> int:
    """Workspace index as a non-negative integer, or InvalidArgument."""
    try:
        index = int(index)
    except (TypeError, ValueError):
        raise InvalidArgument("Workspace index must be an integer", {"index": index})
    if index < 0:
        raise InvalidArgument(f"Invalid workspace index {index}", {"index": index})
    return index


class WindowControl:
    """Mutating window operations over one window system session."""

    def __init__(self, window_system: WindowSystem, registry: WindowRegistry):
        self.window_system = window_system
        self.registry = registry

    async def event_timestamp(self) -> int:
        """Event time from the window system, or the fallback clock."""
        if self.window_system.supports(Capability.EVENT_TIME):
            try:
                return int(await self.window_system.get_current_time())
            except Exception as e:
                logger.debug(f"Window system time unavailable, using fallback clock: {e}")
        return fallback_timestamp()

    async def _workspace(self, index: int) -> Workspace:
        workspace = await self.window_system.get_workspace_by_index(index)
        if workspace is None:
            raise UnresolvableReference(f"No workspace {index}", {"index": index})
        return workspace

    async def _unminimize_if_needed(self, record: WindowRecord) -> None:
        """Un-minimize ``record``; failures are logged and ignored."""
        if not self.window_system.supports(Capability.MINIMIZE):
            return
        try:
            if record.handle.is_minimized():
                await self.window_system.unminimize(record.handle)
                logger.debug(f"Unminimized window {record.id}")
        except Exception as e:
            logger.warning(f"Failed to unminimize window {record.id}: {e}")

    async def _follow_to_workspace(self, record: WindowRecord, timestamp: int) -> None:
        """Switch to ``record``'s workspace when it lives elsewhere.

        Switch failures are logged and ignored; activation is still attempted.
        """
        if record.is_pinned:
            return
        try:
            active_index = await self.window_system.get_active_workspace_index()
            if active_index == record.workspace_index:
                return
            workspace = await self.window_system.get_workspace_by_index(record.workspace_index)
            if workspace is None:
                logger.debug(f"Workspace {record.workspace_index} of window {record.id} not found")
                return
            self.window_system.require(Capability.ACTIVATE_WORKSPACE)
            await self.window_system.activate_workspace(workspace, timestamp)
            logger.debug(f"Switched to workspace {workspace.index} for window {record.id}")
        except Exception as e:
            logger.warning(f"Workspace switch for window {record.id} failed (continuing): {e}")

    async def activate_record(self, record: WindowRecord) -> OperationResult:
        """Bring ``record`` to front: follow its workspace, unminimize, activate."""
        try:
            self.window_system.require(Capability.ACTIVATE)
        except PrimitiveUnavailable as e:
            logger.error(f"Cannot activate window {record.id}: {e}")
            return OperationResult.failure(Outcome.UNAVAILABLE, str(e), record.id)

        timestamp = await self.event_timestamp()
        await self._follow_to_workspace(record, timestamp)
        await self._unminimize_if_needed(record)

        try:
            await self.window_system.activate_window(record.handle, timestamp)
        except Exception as e:
            logger.error(f"Failed to activate window {record.id}: {e}")
            return OperationResult.failure(Outcome.FAILED, f"Activation failed: {e}", record.id)

        logger.info(f"Activated window {record.id} ({record.class_key})")
        return OperationResult.success(f"Activated {record.id}", record.id)

    async def activate(self, window_id: str) -> OperationResult:
        """Activate the window with id ``window_id``."""
        try:
            record = await self.registry.find_by_id(window_id)
            return await self.activate_record(record)
        except UnresolvableReference as e:
            logger.info(f"Activate: {e}")
            return OperationResult.failure(Outcome.NOT_FOUND, str(e))
        except Exception as e:
            logger.error(f"Activate {window_id!r} failed: {e}")
            return OperationResult.failure(Outcome.FAILED, str(e))

    async def resize_record(self, record: WindowRecord, width: int, height: int) -> OperationResult:
        """Resize ``record`` keeping its frame position."""
        try:
            self.window_system.require(Capability.MOVE_RESIZE)
        except PrimitiveUnavailable as e:
            logger.error(f"Cannot resize window {record.id}: {e}")
            return OperationResult.failure(Outcome.UNAVAILABLE, str(e), record.id)

        x, y = 0, 0
        if self.window_system.supports(Capability.FRAME_RECT):
            try:
                rect = record.handle.get_frame_rect()
                if rect is not None:
                    x, y = rect.x, rect.y
            except Exception as e:
                logger.debug(f"Frame rect of window {record.id} unavailable, using (0, 0): {e}")

        await self._unminimize_if_needed(record)

        try:
            await self.window_system.move_resize_frame(record.handle, True, x, y, width, height)
        except Exception as e:
            logger.error(f"Failed to resize window {record.id}: {e}")
            return OperationResult.failure(Outcome.FAILED, f"Resize failed: {e}", record.id)

        logger.info(f"Resized window {record.id} to {width}x{height} at ({x}, {y})")
        return OperationResult.success(f"Resized {record.id}", record.id)

    async def resize(self, window_id: str, width: int, height: int) -> OperationResult:
        """Resize the window with id ``window_id`` to ``width`` x ``height``."""
        try:
            width, height = validate_size(width, height)
        except InvalidArgument as e:
            logger.info(f"Resize {window_id!r}: {e}")
            return OperationResult.failure(Outcome.INVALID_ARGUMENT, str(e))

        try:
            record = await self.registry.find_by_id(window_id)
            return await self.resize_record(record, width, height)
        except UnresolvableReference as e:
            return OperationResult.failure(Outcome.NOT_FOUND, str(e))
        except Exception as e:
            logger.error(f"Resize {window_id!r} failed: {e}")
            return OperationResult.failure(Outcome.FAILED, str(e))

    async def move_record_to_workspace(self, record: WindowRecord, workspace: Workspace) -> OperationResult:
        """Move ``record`` to ``workspace``; pinned windows are left alone."""
        if record.is_pinned:
            logger.debug(f"Window {record.id} is pinned, nothing to move")
            return OperationResult.success(f"{record.id} is on all workspaces", record.id)

        try:
            self.window_system.require(Capability.CHANGE_WORKSPACE)
            await self.window_system.change_workspace(record.handle, workspace)
        except PrimitiveUnavailable as e:
            logger.error(f"Cannot move window {record.id}: {e}")
            return OperationResult.failure(Outcome.UNAVAILABLE, str(e), record.id)
        except Exception as e:
            logger.error(f"Failed to move window {record.id} to workspace {workspace.index}: {e}")
            return OperationResult.failure(Outcome.FAILED, f"Move failed: {e}", record.id)

        logger.info(f"Moved window {record.id} to workspace {workspace.index}")
        return OperationResult.success(f"Moved {record.id}", record.id)

    async def move_to_workspace(self, window_id: str, index: int) -> OperationResult:
        """Move the window with id ``window_id`` to workspace ``index``."""
        try:
            index = validate_workspace_index(index)
            record = await self.registry.find_by_id(window_id)
            workspace = await self._workspace(index)
            return await self.move_record_to_workspace(record, workspace)
        except InvalidArgument as e:
            return OperationResult.failure(Outcome.INVALID_ARGUMENT, str(e))
        except UnresolvableReference as e:
            logger.info(f"Move {window_id!r}: {e}")
            return OperationResult.failure(Outcome.NOT_FOUND, str(e))
        except Exception as e:
            logger.error(f"Move {window_id!r} to workspace {index} failed: {e}")
            return OperationResult.failure(Outcome.FAILED, str(e))

    async def switch_workspace(self, index: int) -> OperationResult:
        """Make workspace ``index`` the active one."""
        try:
            index = validate_workspace_index(index)
        except InvalidArgument as e:
            return OperationResult.failure(Outcome.INVALID_ARGUMENT, str(e))

        try:
            workspace = await self._workspace(index)
            self.window_system.require(Capability.ACTIVATE_WORKSPACE)
            await self.window_system.activate_workspace(workspace, await self.event_timestamp())
        except UnresolvableReference as e:
            return OperationResult.failure(Outcome.NOT_FOUND, str(e))
        except PrimitiveUnavailable as e:
            logger.error(f"Cannot switch workspace: {e}")
            return OperationResult.failure(Outcome.UNAVAILABLE, str(e))
        except Exception as e:
            logger.error(f"Failed to switch to workspace {index}: {e}")
            return OperationResult.failure(Outcome.FAILED, str(e))

        logger.info(f"Switched to workspace {index}")
        return OperationResult.success(f"Workspace {index}")

    async def focus_by_class(self, class_key: str) -> FocusByClassCode:
        """
        Focus a window whose class key equals ``class_key``.

        A match on the active workspace (or pinned) wins over an off-workspace
        match; within a group the first in snapshot order wins.

        Returns:
            SUCCESS, NO_MATCH, or ACTIVATION_FAILED when a match was found but
            could not be focused
        """
        wanted = (class_key or "").strip().lower()
        if not wanted:
            return FocusByClassCode.NO_MATCH

        try:
            records = await self.registry.snapshot()
        except Exception as e:
            logger.error(f"FocusByCls {wanted}: enumeration failed: {e}")
            return FocusByClassCode.NO_MATCH

        matches = [r for r in records if r.class_key == wanted]
        if not matches:
            logger.info(f"FocusByCls {wanted}: no match")
            return FocusByClassCode.NO_MATCH

        active_index = await self.registry.active_workspace_index()
        target = next((r for r in matches if r.is_visible_on(active_index)), matches[0])

        try:
            result = await self.activate_record(target)
        except Exception as e:
            logger.error(f"FocusByCls {wanted}: activation of {target.id} raised: {e}")
            return FocusByClassCode.ACTIVATION_FAILED

        return FocusByClassCode.SUCCESS if result else FocusByClassCode.ACTIVATION_FAILED
