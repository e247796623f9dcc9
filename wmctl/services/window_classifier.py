"""
Window class labelling and application id matching.

Class keys have the form "<instance>.<class>", lowercase. Native class
metadata wins; a missing half is filled with the application id reported by
the window system's application tracker, so native Wayland clients and
X11 clients share one labelling scheme.
"""

import logging
from typing import Optional, Tuple

from ..constants import UNKNOWN_CLASS_PART
from ..window_system import Capability, WindowHandle, WindowSystem

logger = logging.getLogger(__name__)

REVERSE_DOMAIN_PREFIXES = {"com", "org", "io", "net", "dev", "app", "de"}


def normalize_class(class_name: str) -> str:
    """
    Strip a .desktop suffix and reverse-domain prefix, then lowercase.

    Examples:
        "com.mitchellh.ghostty" → "ghostty"
        "org.gnome.Nautilus.desktop" → "nautilus"
        "firefox" → "firefox"

    Args:
        class_name: Class, instance or application id

    Returns:
        Normalized name, "unknown" for empty input
    """
    if not class_name:
        return UNKNOWN_CLASS_PART

    if class_name.lower().endswith(".desktop"):
        class_name = class_name[: -len(".desktop")]

    if "." in class_name:
        parts = class_name.split(".")
        if len(parts) > 1 and parts[0].lower() in REVERSE_DOMAIN_PREFIXES:
            class_name = parts[-1]

    return class_name.lower()


def _read(reader, handle: WindowHandle) -> Optional[str]:
    try:
        value = reader(handle)
    except Exception as e:
        logger.debug(f"Class read failed: {e}")
        return None
    if value is None:
        return None
    value = str(value)
    return value or None


class WindowClassifier:
    """Derives class keys through the window system session."""

    def __init__(self, window_system: WindowSystem):
        self.window_system = window_system

    def classify_parts(self, handle: WindowHandle) -> Tuple[str, str]:
        """(instance, class), lowercase, "unknown" for undetermined halves."""
        instance: Optional[str] = None
        cls: Optional[str] = None

        if self.window_system.supports(Capability.WM_CLASS):
            instance = _read(lambda h: h.get_wm_class_instance(), handle)
            cls = _read(lambda h: h.get_wm_class(), handle)

        if (not instance or not cls) and self.window_system.supports(Capability.APP_TRACKER):
            app_id = _read(self.window_system.lookup_app_id, handle)
            if app_id:
                instance = instance or app_id
                cls = cls or app_id

        return (
            (instance or UNKNOWN_CLASS_PART).lower(),
            (cls or UNKNOWN_CLASS_PART).lower(),
        )

    def classify(self, handle: WindowHandle) -> str:
        """Class key of ``handle``; never raises."""
        instance, cls = self.classify_parts(handle)
        return f"{instance}.{cls}"


def match_app_id(expected: str, instance: str, cls: str) -> Tuple[bool, str]:
    """
    Match a window's class against an expected application id.

    Matching tiers (in order):
    1. Full class key ("instance.class")
    2. Class half
    3. Instance half
    4. Normalized (strip .desktop suffix and reverse-domain prefix)

    Args:
        expected: Application id given to the launcher
        instance: Lowercase instance half of the class key
        cls: Lowercase class half of the class key

    Returns:
        (matched, match_type)
        Match types: "class_key", "class", "instance", "normalized", "none"
    """
    expected = (expected or "").strip().lower()
    if not expected:
        return (False, "none")

    if expected == f"{instance}.{cls}":
        return (True, "class_key")
    if expected == cls:
        return (True, "class")
    if expected == instance:
        return (True, "instance")

    expected_norm = normalize_class(expected)
    if expected_norm != UNKNOWN_CLASS_PART and expected_norm in (
        normalize_class(cls),
        normalize_class(instance),
    ):
        return (True, "normalized")

    return (False, "none")
