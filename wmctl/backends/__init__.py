"""Window system backends."""

from .sway import SwayWindowHandle, SwayWindowSystem, connect_with_retry

__all__ = ["SwayWindowHandle", "SwayWindowSystem", "connect_with_retry"]
