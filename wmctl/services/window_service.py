"""Window service facade.

One object per window system session wiring the registry, control
operations, focus cycling and launch tracking together. The IPC server calls
only this class; each method maps to one remote method and returns the plain
value sent back on the wire.
"""

import logging
from typing import Any, Dict, List

from ..constants import SERVICE_NAME, SERVICE_VERSION
from ..models.config import ServiceConfig
from ..models.results import FocusPolicy
from ..window_system import CONTRACT_VERSION, WindowSystem
from .focus_cycle import NEXT, PREVIOUS, FocusCycleEngine
from .launch_tracker import LaunchTracker
from .window_classifier import WindowClassifier
from .window_control import WindowControl
from .window_identifier import WindowIdentifier
from .window_registry import WindowRegistry

logger = logging.getLogger(__name__)


class WindowService:
    """Remote-facing window operations."""

    def __init__(self, window_system: WindowSystem, config: ServiceConfig, spawner=None):
        self.window_system = window_system
        self.config = config

        self.registry = WindowRegistry(
            window_system,
            identifier=WindowIdentifier(window_system.capabilities),
            classifier=WindowClassifier(window_system),
        )
        self.control = WindowControl(window_system, self.registry)
        self.focus_cycle = FocusCycleEngine(self.registry, self.control, config)
        self.launcher = LaunchTracker(window_system, self.registry, self.control, config, spawner=spawner)

    def update_config(self, config: ServiceConfig) -> None:
        """Swap in a reloaded config; in-flight launches keep their timers."""
        self.config = config
        self.focus_cycle.config = config
        self.launcher.config = config
        logger.info(f"Config applied (denylist={config.denylisted_classes})")

    # Queries

    async def list_windows(self) -> str:
        return await self.registry.list_text()

    async def get_active_workspace(self) -> str:
        return str(await self.registry.active_workspace_index())

    async def get_active_window(self) -> str:
        return await self.registry.active_window_id()

    # Focus cycling

    async def focus_next_same_app_window(self) -> bool:
        return await self.focus_cycle.cycle(FocusPolicy.SAME_CLASS, NEXT)

    async def focus_prev_same_app_window(self) -> bool:
        return await self.focus_cycle.cycle(FocusPolicy.SAME_CLASS, PREVIOUS)

    async def focus_next_other_app_window(self) -> bool:
        return await self.focus_cycle.cycle(FocusPolicy.OTHER_CLASS, NEXT)

    async def focus_prev_other_app_window(self) -> bool:
        return await self.focus_cycle.cycle(FocusPolicy.OTHER_CLASS, PREVIOUS)

    async def focus_next_any_app_window(self) -> bool:
        return await self.focus_cycle.cycle(FocusPolicy.ANY_CLASS, NEXT)

    async def focus_prev_any_app_window(self) -> bool:
        return await self.focus_cycle.cycle(FocusPolicy.ANY_CLASS, PREVIOUS)

    # Control

    async def activate_by_id(self, window_id: str) -> bool:
        return bool(await self.control.activate(window_id))

    async def resize_by_id(self, window_id: str, width: int, height: int) -> bool:
        return bool(await self.control.resize(window_id, width, height))

    async def move_to_workspace_by_id(self, window_id: str, index: int) -> bool:
        return bool(await self.control.move_to_workspace(window_id, index))

    async def switch_workspace(self, index: int) -> bool:
        return bool(await self.control.switch_workspace(index))

    async def focus_by_cls(self, class_key: str) -> int:
        return int(await self.control.focus_by_class(class_key))

    async def launch_here(self, path: str, app_id: str) -> bool:
        return bool(await self.launcher.launch(path, app_id))

    # Diagnostics

    def info(self) -> Dict[str, Any]:
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "contract_version": CONTRACT_VERSION,
            "backend_contract_version": self.window_system.contract_version,
            "capabilities": sorted(c.value for c in self.window_system.capabilities),
        }

    def launch_stats(self) -> Dict[str, Any]:
        return self.launcher.get_stats().to_dict()

    def pending_launches(self) -> List[Dict[str, Any]]:
        return self.launcher.get_pending_launches()

    async def shutdown(self) -> None:
        await self.launcher.shutdown()
