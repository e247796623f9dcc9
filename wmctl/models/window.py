"""Window record model shared by the registry, focus cycling and control operations."""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..constants import PINNED_WORKSPACE
from ..window_system import WindowHandle


@dataclass(frozen=True)
class WindowRecord:
    """One eligible window as seen by a single snapshot."""
    order_key: int  # Creation-order key (primary sort key)
    id: str  # Canonical hex id, e.g. "0x3fa2"
    workspace_index: int  # Zero-based, or -1 when pinned to all workspaces
    class_key: str  # "<instance>.<class>", lowercase
    title: str
    handle: Optional[WindowHandle] = field(default=None, compare=False, repr=False)

    @property
    def is_pinned(self) -> bool:
        return self.workspace_index == PINNED_WORKSPACE

    def sort_key(self) -> Tuple[int, int, str, str, str]:
        """Total order used by snapshots; independent of focus."""
        return (self.order_key, self.workspace_index, self.class_key, self.title, self.id)

    def is_visible_on(self, workspace_index: int) -> bool:
        """True if the window shows on ``workspace_index`` (directly or pinned)."""
        return self.workspace_index == workspace_index or self.is_pinned

    def to_line(self) -> str:
        """Listing line: ``id workspace classKey title``."""
        return f"{self.id} {self.workspace_index} {self.class_key} {self.title}"
