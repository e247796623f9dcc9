"""Focus cycling over the windows of the active workspace.

Three adjacency policies share one structure: take a snapshot, keep the
windows on the active workspace (or pinned), find the focused window in that
ordered list, then walk circularly by +1 (next) or -1 (previous).

- same class: step within the windows sharing the focused window's class
- other class: first window of a different, non-denylisted class
- any class: first other window whose class is not denylisted
"""

import logging
from typing import Callable, List, Optional, Sequence

from ..models.config import ServiceConfig
from ..models.results import FocusPolicy
from ..models.window import WindowRecord
from .window_control import WindowControl
from .window_registry import WindowRegistry

logger = logging.getLogger(__name__)

NEXT = 1
PREVIOUS = -1


def _start_index(records: Sequence[WindowRecord], active_id: str, delta: int) -> int:
    """Position of the focused window, or the slot that makes the first step land on an end."""
    for index, record in enumerate(records):
        if record.id == active_id:
            return index
    return -1 if delta > 0 else 0


def _scan(
    records: Sequence[WindowRecord],
    active_id: str,
    delta: int,
    accept: Callable[[WindowRecord], bool],
) -> Optional[WindowRecord]:
    """First record accepted within one full circuit from the focused window."""
    length = len(records)
    start = _start_index(records, active_id, delta)
    for step in range(1, length + 1):
        candidate = records[(start + delta * step) % length]
        if accept(candidate):
            return candidate
    return None


def select_same_class(
    records: Sequence[WindowRecord], active_id: str, active_class: str, delta: int
) -> Optional[WindowRecord]:
    """Neighbour of the focused window among windows of its own class."""
    group = [r for r in records if r.class_key == active_class]
    if not group:
        return None
    start = _start_index(group, active_id, delta)
    return group[(start + delta) % len(group)]


def select_other_class(
    records: Sequence[WindowRecord],
    active_id: str,
    active_class: str,
    delta: int,
    is_denylisted: Callable[[str], bool],
) -> Optional[WindowRecord]:
    """Nearest window of a different, non-denylisted class."""

    def accept(candidate: WindowRecord) -> bool:
        return candidate.class_key != active_class and not is_denylisted(candidate.class_key)

    if len(records) == 1:
        # A one-window circuit would only ever compare the window with itself
        only = records[0]
        if only.id != active_id and accept(only):
            return only
        return None

    return _scan(records, active_id, delta, accept)


def select_any_class(
    records: Sequence[WindowRecord],
    active_id: str,
    delta: int,
    is_denylisted: Callable[[str], bool],
) -> Optional[WindowRecord]:
    """Nearest other window whose class is not denylisted."""

    def accept(candidate: WindowRecord) -> bool:
        return candidate.id != active_id and not is_denylisted(candidate.class_key)

    return _scan(records, active_id, delta, accept)


class FocusCycleEngine:
    """Runs a focus-cycle policy against the live window system."""

    def __init__(self, registry: WindowRegistry, control: WindowControl, config: ServiceConfig):
        self.registry = registry
        self.control = control
        self.config = config

    async def select(self, policy: FocusPolicy, delta: int) -> Optional[WindowRecord]:
        """Candidate the policy would focus, without focusing it."""
        delta = NEXT if delta > 0 else PREVIOUS

        active = await self.registry.active_window()
        if active is None:
            logger.debug(f"{policy.value}: no focused window")
            return None

        active_id = self.registry.identifier.resolve_id(active)
        active_class = self.registry.classifier.classify(active)
        active_workspace = await self.registry.active_workspace_index()

        records: List[WindowRecord] = [
            r for r in await self.registry.snapshot() if r.is_visible_on(active_workspace)
        ]
        if not records:
            logger.debug(f"{policy.value}: workspace {active_workspace} has no windows")
            return None

        if policy is FocusPolicy.SAME_CLASS:
            return select_same_class(records, active_id, active_class, delta)
        if policy is FocusPolicy.OTHER_CLASS:
            return select_other_class(records, active_id, active_class, delta, self.config.is_denylisted)
        return select_any_class(records, active_id, delta, self.config.is_denylisted)

    async def cycle(self, policy: FocusPolicy, delta: int) -> bool:
        """Focus the next (delta > 0) or previous window under ``policy``.

        Returns:
            True if a window was activated; never raises
        """
        try:
            target = await self.select(policy, delta)
            if target is None:
                logger.info(f"Focus cycle {policy.value} ({delta:+d}): no candidate")
                return False
            result = await self.control.activate_record(target)
            return bool(result)
        except Exception as e:
            logger.error(f"Focus cycle {policy.value} failed: {e}")
            return False
