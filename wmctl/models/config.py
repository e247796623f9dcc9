"""Service configuration model.

Loaded from ~/.config/wmctl/config.json; every field has a default so a
missing file yields a working daemon.
"""

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..constants import DEFAULT_DENYLISTED_CLASSES

logger = logging.getLogger(__name__)

DEFAULT_TERMINAL_COMMANDS = [
    "gnome-terminal",
    "kgx",
    "ptyxis",
    "ghostty",
    "alacritty",
    "foot",
    "kitty",
]


class ServiceConfig(BaseModel):
    """Runtime settings of the wmctl daemon."""

    denylisted_classes: List[str] = Field(
        default_factory=lambda: list(DEFAULT_DENYLISTED_CLASSES),
        description="Class keys never focused by other/any-app cycling",
    )
    launch_timeout: float = Field(default=10.0, gt=0, description="Seconds to wait for a launched window")
    class_change_timeout: float = Field(default=5.0, gt=0, description="Seconds to wait for a late class change")
    terminal_commands: List[str] = Field(
        default_factory=lambda: list(DEFAULT_TERMINAL_COMMANDS),
        description="Launch paths (or basenames) that get terminal placement",
    )
    terminal_width_fraction: float = Field(default=0.4, gt=0, le=1)
    terminal_height_fraction: float = Field(default=0.5, gt=0, le=1)
    terminal_settle_delay: float = Field(default=0.25, ge=0, description="Seconds before resizing a new terminal")
    socket_path: Optional[Path] = None
    log_level: str = Field(default="INFO")

    @field_validator("denylisted_classes")
    @classmethod
    def normalize_class_keys(cls, v: List[str]) -> List[str]:
        """Class keys compare lowercase."""
        return [c.strip().lower() for c in v if c and c.strip()]

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    def is_denylisted(self, class_key: str) -> bool:
        return class_key in self.denylisted_classes
