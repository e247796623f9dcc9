"""IPC request parameter models.

Params may arrive as a JSON object or as a positional array (in declaration
order), mirroring the D-Bus signatures the methods were first exposed with.
Range checks stay in the operations so out-of-range values produce a false
result rather than a protocol error.
"""

from typing import Any, Dict, List, Type, TypeVar, Union

from pydantic import BaseModel, Field

T = TypeVar("T", bound="RequestParams")


class RequestParams(BaseModel):
    """Base class for method params."""

    @classmethod
    def parse_params(cls: Type[T], params: Union[Dict[str, Any], List[Any], None]) -> T:
        """Build from JSON-RPC params (object, array or null)."""
        if params is None:
            params = {}
        if isinstance(params, list):
            names = list(cls.model_fields)
            if len(params) > len(names):
                raise ValueError(f"Expected at most {len(names)} positional params, got {len(params)}")
            params = dict(zip(names, params))
        return cls.model_validate(params)


class NoParams(RequestParams):
    pass


class WindowIdParams(RequestParams):
    id: str = Field(..., description="Window id, e.g. 0x3fa2")


class ResizeParams(RequestParams):
    id: str = Field(..., description="Window id")
    width: int = Field(..., description="New frame width in pixels")
    height: int = Field(..., description="New frame height in pixels")


class MoveToWorkspaceParams(RequestParams):
    id: str = Field(..., description="Window id")
    index: int = Field(..., description="Zero-based workspace index")


class WorkspaceIndexParams(RequestParams):
    index: int = Field(..., description="Zero-based workspace index")


class FocusByClassParams(RequestParams):
    cls: str = Field(..., description="Class key, e.g. firefox.firefox")


class LaunchParams(RequestParams):
    path: str = Field(..., description="Command line or executable path to spawn")
    app_id: str = Field(..., description="Class key the new window is expected to have")

    class Config:
        json_schema_extra = {
            "example": {
                "path": "/usr/bin/gnome-terminal",
                "app_id": "gnome-terminal-server.gnome-terminal-server",
            }
        }
