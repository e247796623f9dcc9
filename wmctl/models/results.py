"""Typed operation outcomes.

Every public operation returns one of these instead of raising, so the IPC
layer always has a well-formed boolean or integer code to send back.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


class Outcome(Enum):
    """Result category of a window operation."""
    OK = "ok"
    NOT_FOUND = "not_found"  # Id or workspace index did not resolve
    INVALID_ARGUMENT = "invalid_argument"  # Rejected before any mutation
    UNAVAILABLE = "unavailable"  # Window system lacks the primitive
    FAILED = "failed"  # Underlying call raised


@dataclass(frozen=True)
class OperationResult:
    """Discriminated result of one operation; truthy only on success."""
    outcome: Outcome
    message: str = ""
    window_id: Optional[str] = None

    def __bool__(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @classmethod
    def success(cls, message: str = "", window_id: Optional[str] = None) -> "OperationResult":
        return cls(Outcome.OK, message, window_id)

    @classmethod
    def failure(cls, outcome: Outcome, message: str, window_id: Optional[str] = None) -> "OperationResult":
        return cls(outcome, message, window_id)


class FocusByClassCode(IntEnum):
    """Wire codes of FocusByCls."""
    SUCCESS = 0
    NO_MATCH = 1
    ACTIVATION_FAILED = 2


class FocusPolicy(Enum):
    """Adjacency policies of the focus-cycle engine."""
    SAME_CLASS = "same_class"
    OTHER_CLASS = "other_class"
    ANY_CLASS = "any_class"
