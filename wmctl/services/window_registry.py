"""Window registry: ordered snapshots of the windows a user would call "open".

Snapshots are rebuilt on every request; window state can change between any
two calls, so nothing is cached.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from ..constants import PINNED_WORKSPACE
from ..errors import UnresolvableReference
from ..models.window import WindowRecord
from ..window_system import WindowHandle, WindowSystem, WindowType
from .window_classifier import WindowClassifier
from .window_identifier import WindowIdentifier, normalize_id

logger = logging.getLogger(__name__)

Snapshot = Tuple[WindowRecord, ...]

EXCLUDED_WINDOW_TYPES = {WindowType.DESKTOP, WindowType.DOCK}


def render_listing(records: Iterable[WindowRecord]) -> str:
    """One ``id workspace classKey title`` line per record, newline-joined."""
    return "\n".join(record.to_line() for record in records)


def sort_records(records: Iterable[WindowRecord]) -> List[WindowRecord]:
    """Sort by (order_key, workspace_index, class_key, title, id)."""
    return sorted(records, key=WindowRecord.sort_key)


class WindowRegistry:
    """Builds snapshots through one window system session."""

    def __init__(
        self,
        window_system: WindowSystem,
        identifier: Optional[WindowIdentifier] = None,
        classifier: Optional[WindowClassifier] = None,
    ):
        self.window_system = window_system
        self.identifier = identifier or WindowIdentifier(window_system.capabilities)
        self.classifier = classifier or WindowClassifier(window_system)

    @staticmethod
    def is_tasklist_window(handle: WindowHandle) -> bool:
        """Taskbar eligibility: no desktop/dock windows, no skip-taskbar windows."""
        try:
            if handle.is_skip_taskbar():
                return False
            if handle.get_window_type() in EXCLUDED_WINDOW_TYPES:
                return False
        except Exception as e:
            logger.debug(f"Eligibility check failed, keeping window: {e}")
        return True

    @staticmethod
    def workspace_index(handle: WindowHandle) -> int:
        """Owning workspace index, -1 when pinned, 0 when unknown."""
        try:
            if handle.is_on_all_workspaces():
                return PINNED_WORKSPACE
        except Exception as e:
            logger.debug(f"Pinned check failed: {e}")
        try:
            index = handle.get_workspace_index()
            if index is not None and index >= 0:
                return int(index)
        except Exception as e:
            logger.debug(f"Workspace lookup failed: {e}")
        return 0

    @staticmethod
    def read_title(handle: WindowHandle) -> str:
        try:
            return handle.get_title() or ""
        except Exception as e:
            logger.debug(f"Title read failed: {e}")
            return ""

    def build_record(self, handle: WindowHandle) -> WindowRecord:
        """Resolve every field of one window."""
        return WindowRecord(
            order_key=self.identifier.resolve_order_key(handle),
            id=self.identifier.resolve_id(handle),
            workspace_index=self.workspace_index(handle),
            class_key=self.classifier.classify(handle),
            title=self.read_title(handle),
            handle=handle,
        )

    async def snapshot(self) -> Snapshot:
        """Enumerate, filter and sort every eligible window.

        Returns:
            Tuple of records in snapshot order

        Raises:
            CollaboratorError: If the window system cannot enumerate windows
        """
        handles = await self.window_system.list_windows()

        records: List[WindowRecord] = []
        for handle in handles:
            if not self.is_tasklist_window(handle):
                continue
            records.append(self.build_record(handle))

        ordered = sort_records(records)

        # Ids address windows across calls; keep the first record for a duplicate id
        seen = set()
        unique: List[WindowRecord] = []
        for record in ordered:
            if record.id in seen:
                logger.warning(f"Duplicate window id {record.id} ({record.class_key}), skipping")
                continue
            seen.add(record.id)
            unique.append(record)

        logger.debug(f"Snapshot: {len(unique)} window(s) of {len(handles)} surface(s)")
        return tuple(unique)

    @staticmethod
    def find_in(records: Sequence[WindowRecord], window_id: str) -> Optional[WindowRecord]:
        """Linear scan for a canonical id."""
        for record in records:
            if record.id == window_id:
                return record
        return None

    async def find_by_id(self, window_id: str) -> WindowRecord:
        """Resolve a user-supplied id against a fresh snapshot.

        Raises:
            UnresolvableReference: If the id is malformed or no window has it
        """
        normalized = normalize_id(window_id)
        if normalized is None:
            raise UnresolvableReference(f"Malformed window id {window_id!r}", {"id": str(window_id)})
        record = self.find_in(await self.snapshot(), normalized)
        if record is None:
            raise UnresolvableReference(f"No window {normalized}", {"id": normalized})
        return record

    async def list_text(self) -> str:
        """Full listing text; empty when enumeration fails."""
        try:
            return render_listing(await self.snapshot())
        except Exception as e:
            logger.error(f"Failed to list windows: {e}")
            return ""

    async def active_workspace_index(self) -> int:
        """Active workspace index, 0 when it cannot be determined."""
        try:
            return int(await self.window_system.get_active_workspace_index())
        except Exception as e:
            logger.warning(f"Failed to read active workspace: {e}")
            return 0

    async def active_window(self) -> Optional[WindowHandle]:
        try:
            return await self.window_system.get_focus_window()
        except Exception as e:
            logger.warning(f"Failed to read focus window: {e}")
            return None

    async def active_window_id(self) -> str:
        """Id of the focused window, or "" when nothing has focus."""
        handle = await self.active_window()
        if handle is None:
            return ""
        return self.identifier.resolve_id(handle)
