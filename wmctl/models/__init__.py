"""Data models for the wmctl daemon."""

from .config import ServiceConfig
from .launch import ClassWatch, LaunchState, LaunchStats, LaunchWatch
from .results import FocusByClassCode, FocusPolicy, OperationResult, Outcome
from .window import WindowRecord

__all__ = [
    "ServiceConfig",
    "ClassWatch",
    "LaunchState",
    "LaunchStats",
    "LaunchWatch",
    "FocusByClassCode",
    "FocusPolicy",
    "OperationResult",
    "Outcome",
    "WindowRecord",
]
