"""
Error types and JSON-RPC error codes for the wmctl daemon.

Operations never let these escape to the IPC layer: they are raised inside
services and converted into OperationResult values at the operation boundary.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """
    Error codes reported in JSON-RPC error objects.

    JSON-RPC standard codes:
    - -32700: Parse error
    - -32600: Invalid request
    - -32601: Method not found
    - -32602: Invalid params
    - -32603: Internal error

    Custom codes (1000-1999):
    - 1000-1099: Argument errors
    - 1100-1199: Window system errors
    - 1200-1299: Launch errors
    - 1300-1399: Daemon state errors
    """

    # JSON-RPC standard errors
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Argument errors (1000-1099)
    INVALID_ARGUMENT = 1000

    # Window system errors (1100-1199)
    WINDOW_NOT_FOUND = 1100
    WORKSPACE_NOT_FOUND = 1101
    PRIMITIVE_UNAVAILABLE = 1102
    WINDOW_SYSTEM_FAILED = 1103

    # Launch errors (1200-1299)
    SPAWN_FAILED = 1200

    # Daemon state errors (1300-1399)
    DAEMON_NOT_INITIALIZED = 1300


class WmctlError(Exception):
    """Base class for errors raised inside the daemon."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def to_dict(self) -> Dict[str, Any]:
        """Format as a JSON-RPC error object."""
        error: Dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.data:
            error["data"] = self.data
        return error


class UnresolvableReference(WmctlError):
    """A window id or workspace index does not resolve to a live object."""

    code = ErrorCode.WINDOW_NOT_FOUND


class InvalidArgument(WmctlError):
    """Argument rejected before any mutation was attempted."""

    code = ErrorCode.INVALID_ARGUMENT


class PrimitiveUnavailable(WmctlError):
    """The window system does not provide a required operation."""

    code = ErrorCode.PRIMITIVE_UNAVAILABLE

    def __init__(self, capability: Any):
        name = getattr(capability, "value", str(capability))
        super().__init__(f"Window system does not support '{name}'", {"capability": name})
        self.capability = capability


class CollaboratorError(WmctlError):
    """An underlying window system call failed."""

    code = ErrorCode.WINDOW_SYSTEM_FAILED


class SpawnError(WmctlError):
    """The launch command could not be started."""

    code = ErrorCode.SPAWN_FAILED
