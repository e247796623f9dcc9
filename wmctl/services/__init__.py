"""
Services module for the wmctl daemon: window identity, classification,
snapshots, control operations, focus cycling and launch tracking.
"""

from .focus_cycle import FocusCycleEngine
from .launch_tracker import LaunchTracker, ProcessSpawner
from .window_classifier import WindowClassifier, match_app_id, normalize_class
from .window_control import WindowControl
from .window_identifier import WindowIdentifier, format_hex_id, normalize_id
from .window_registry import WindowRegistry, render_listing
from .window_service import WindowService

__all__ = [
    "FocusCycleEngine",
    "LaunchTracker",
    "ProcessSpawner",
    "WindowClassifier",
    "match_app_id",
    "normalize_class",
    "WindowControl",
    "WindowIdentifier",
    "format_hex_id",
    "normalize_id",
    "WindowRegistry",
    "render_listing",
    "WindowService",
]
