"""
Window identity resolution.

Derives the canonical hex id and the creation-order key of a window from the
sources the backend declares, in a fixed priority order:

Id priority:
1. Native cross-display window id (e.g. X11 window of an XWayland client)
2. Creation sequence number
3. Backend-internal numeric id
4. Python object hash (not stable across daemon or session restarts)

Order key priority:
1. Creation sequence number (tracks creation time)
2. Backend-internal numeric id
3. Numeric value of the resolved hex id
4. 0 ("oldest/unknown", disambiguated by the snapshot tie-breakers)
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, List, Optional

from ..window_system import Capability, WindowHandle

logger = logging.getLogger(__name__)

HEX_DIGITS = re.compile(r"[0-9a-f]+")


@dataclass(frozen=True)
class NumericSource:
    """One numeric identity source gated by a capability."""
    name: str
    capability: Capability
    read: Callable[[WindowHandle], Optional[int]]


NATIVE_XID = NumericSource("native_xid", Capability.NATIVE_XID, lambda h: h.get_xwindow())
STABLE_SEQUENCE = NumericSource("stable_sequence", Capability.STABLE_SEQUENCE, lambda h: h.get_stable_sequence())
INTERNAL_ID = NumericSource("internal_id", Capability.INTERNAL_ID, lambda h: h.get_internal_id())

ID_PRIORITY = (NATIVE_XID, STABLE_SEQUENCE, INTERNAL_ID)
ORDER_KEY_PRIORITY = (STABLE_SEQUENCE, INTERNAL_ID)


def format_hex_id(value: int) -> str:
    """Canonical id form: lowercase, 0x-prefixed, no padding."""
    return f"0x{value:x}"


def normalize_id(value: Any) -> Optional[str]:
    """
    Normalize a user-supplied window id to canonical form.

    Examples:
        "0x3FA2" → "0x3fa2"
        "3fa2"   → "0x3fa2"
        " 0X00ff " → "0xff"
        "zz"     → None

    Args:
        value: Id in any case, with or without 0x prefix

    Returns:
        Canonical id, or None if the input is not hexadecimal
    """
    if value is None:
        return None
    text = str(value).strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if not HEX_DIGITS.fullmatch(text):
        return None
    return format_hex_id(int(text, 16))


def _read_positive(source: NumericSource, handle: WindowHandle) -> Optional[int]:
    try:
        value = source.read(handle)
    except Exception as e:
        logger.debug(f"Identity source {source.name} failed: {e}")
        return None
    if value is None:
        return None
    try:
        value = int(value)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


class WindowIdentifier:
    """Resolves ids and order keys against one backend's capability set."""

    def __init__(self, capabilities: FrozenSet[Capability]):
        self._id_sources: List[NumericSource] = [s for s in ID_PRIORITY if s.capability in capabilities]
        self._order_sources: List[NumericSource] = [
            s for s in ORDER_KEY_PRIORITY if s.capability in capabilities
        ]
        logger.debug(
            f"Identity sources: id={[s.name for s in self._id_sources]}, "
            f"order={[s.name for s in self._order_sources]}"
        )

    def resolve_id(self, handle: WindowHandle) -> str:
        """Canonical hex id of ``handle``. Never raises."""
        for source in self._id_sources:
            value = _read_positive(source, handle)
            if value is not None:
                return format_hex_id(value)

        # Degraded mode: unique while the handle object lives, nothing more
        try:
            value = abs(hash(handle))
        except TypeError:
            value = abs(id(handle))
        logger.debug(f"Falling back to object hash for window id ({value:x})")
        return format_hex_id(value)

    def resolve_order_key(self, handle: WindowHandle) -> int:
        """Creation-order key of ``handle``; 0 when nothing resolves."""
        for source in self._order_sources:
            value = _read_positive(source, handle)
            if value is not None:
                return value

        try:
            normalized = normalize_id(self.resolve_id(handle))
            if normalized is not None:
                return int(normalized, 16)
        except Exception as e:
            logger.debug(f"Order key fallback failed: {e}")
        return 0
