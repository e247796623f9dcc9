"""JSON-RPC IPC server for window control requests.

Exposes the window service via UNIX socket with systemd socket activation
support. One JSON-RPC 2.0 request per line, one response per line.

Method names keep the D-Bus interface of the shell extension this daemon
replaces (ListWindows, ActivateById, ...), so existing scripts only need a
different transport.
"""

import asyncio
import json
import logging
import os
import socket
from pathlib import Path
from typing import Any, Dict, Optional

from .constants import ConfigPaths
from .errors import ErrorCode, WmctlError
from .models.requests import (
    FocusByClassParams,
    LaunchParams,
    MoveToWorkspaceParams,
    NoParams,
    ResizeParams,
    WindowIdParams,
    WorkspaceIndexParams,
)

logger = logging.getLogger(__name__)


class IPCServer:
    """JSON-RPC IPC server for the wmctl CLI and scripts."""

    def __init__(self, window_service: Optional[Any] = None, socket_path: Optional[Path] = None) -> None:
        """Initialize IPC server.

        Args:
            window_service: WindowService handling requests (set later by the daemon)
            socket_path: Socket path when not socket-activated
        """
        self.window_service = window_service
        self.socket_path = socket_path or ConfigPaths.socket_path()
        self.server: Optional[asyncio.Server] = None
        self.clients: set[asyncio.StreamWriter] = set()
        self._owns_socket_file = False

    @classmethod
    async def from_systemd_socket(
        cls, window_service: Optional[Any] = None, socket_path: Optional[Path] = None
    ) -> "IPCServer":
        """Create IPC server using systemd socket activation.

        Returns:
            IPCServer instance with inherited socket, or a fresh one
        """
        server = cls(window_service, socket_path)

        listen_fds = int(os.environ.get("LISTEN_FDS", 0))
        if listen_fds > 0:
            # Socket FD starts at 3 (0=stdin, 1=stdout, 2=stderr)
            fd = 3
            logger.info(f"Using systemd socket activation (FD {fd})")
            sock = socket.socket(fileno=fd)
            await server.start(sock)
        else:
            logger.info("No systemd socket provided, creating new socket")
            await server.start(None)

        return server

    def _error_response(self, request_id: Any, code: ErrorCode, message: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Format JSON-RPC error response."""
        error: Dict[str, Any] = {"code": code.value, "message": message}
        if data:
            error["data"] = data
        return {"jsonrpc": "2.0", "error": error, "id": request_id}

    async def start(self, sock: Optional[socket.socket] = None) -> None:
        """Start IPC server.

        Args:
            sock: Existing socket to use (from systemd), or None to create new
        """
        if sock:
            self.server = await asyncio.start_unix_server(self._handle_client, sock=sock)
            return

        socket_path = self.socket_path
        socket_path.parent.mkdir(parents=True, exist_ok=True)

        # Remove stale socket from a previous run
        if socket_path.exists():
            socket_path.unlink()

        self.server = await asyncio.start_unix_server(self._handle_client, path=str(socket_path))
        self._owns_socket_file = True

        # Socket is user-only accessible
        socket_path.chmod(0o600)

        logger.info(f"IPC server listening on {socket_path} (permissions: 0600)")

    async def stop(self) -> None:
        """Stop IPC server and close all connections."""
        if self.server:
            self.server.close()
            await self.server.wait_closed()

        for writer in list(self.clients):
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

        if self._owns_socket_file and self.socket_path.exists():
            self.socket_path.unlink()

        logger.info("IPC server stopped")

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Serve one client connection until it closes."""
        self.clients.add(writer)
        logger.debug("Client connected")

        try:
            while True:
                data = await reader.readline()
                if not data:
                    break
                if not data.strip():
                    continue

                try:
                    request = json.loads(data.decode())
                except (json.JSONDecodeError, UnicodeDecodeError) as e:
                    logger.warning(f"Malformed request: {e}")
                    response = self._error_response(None, ErrorCode.PARSE_ERROR, "Parse error")
                else:
                    response = await self._handle_request(request)

                writer.write(json.dumps(response).encode() + b"\n")
                await writer.drain()

        except (ConnectionError, asyncio.IncompleteReadError) as e:
            logger.debug(f"Client connection lost: {e}")
        except Exception as e:
            logger.error(f"Error handling client: {e}", exc_info=True)

        finally:
            self.clients.discard(writer)
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass
            logger.debug("Client disconnected")

    async def _handle_request(self, request: Any) -> Dict[str, Any]:
        """Handle a JSON-RPC request.

        Args:
            request: Decoded JSON-RPC request

        Returns:
            JSON-RPC response dictionary
        """
        if not isinstance(request, dict) or not isinstance(request.get("method"), str):
            return self._error_response(None, ErrorCode.INVALID_REQUEST, "Invalid request")

        method = request["method"]
        params = request.get("params")
        request_id = request.get("id")

        if params is not None and not isinstance(params, (dict, list)):
            return self._error_response(request_id, ErrorCode.INVALID_PARAMS, "Params must be an object or array")

        service = self.window_service
        if service is None:
            return self._error_response(request_id, ErrorCode.DAEMON_NOT_INITIALIZED, "Daemon not initialized")

        try:
            if method == "ListWindows":
                NoParams.parse_params(params)
                result = await service.list_windows()
            elif method == "ActivateById":
                p = WindowIdParams.parse_params(params)
                result = await service.activate_by_id(p.id)
            elif method == "GetActiveWorkspace":
                NoParams.parse_params(params)
                result = await service.get_active_workspace()
            elif method == "GetActiveWindow":
                NoParams.parse_params(params)
                result = await service.get_active_window()

            elif method == "FocusNextSameAppWindow":
                result = await service.focus_next_same_app_window()
            elif method == "FocusPrevSameAppWindow":
                result = await service.focus_prev_same_app_window()
            elif method == "FocusNextOtherAppWindow":
                result = await service.focus_next_other_app_window()
            elif method == "FocusPrevOtherAppWindow":
                result = await service.focus_prev_other_app_window()
            elif method == "FocusNextAnyAppWindow":
                result = await service.focus_next_any_app_window()
            elif method == "FocusPrevAnyAppWindow":
                result = await service.focus_prev_any_app_window()

            elif method == "ResizeById":
                p = ResizeParams.parse_params(params)
                result = await service.resize_by_id(p.id, p.width, p.height)
            elif method == "MoveToWorkspaceById":
                p = MoveToWorkspaceParams.parse_params(params)
                result = await service.move_to_workspace_by_id(p.id, p.index)
            elif method == "SwitchWorkspace":
                p = WorkspaceIndexParams.parse_params(params)
                result = await service.switch_workspace(p.index)
            elif method == "FocusByCls":
                p = FocusByClassParams.parse_params(params)
                result = await service.focus_by_cls(p.cls)
            elif method == "LaunchHere":
                p = LaunchParams.parse_params(params)
                result = await service.launch_here(p.path, p.app_id)

            elif method == "daemon.info":
                result = service.info()
            elif method == "launch.stats":
                result = service.launch_stats()
            elif method == "launch.pending":
                result = service.pending_launches()

            else:
                return self._error_response(request_id, ErrorCode.METHOD_NOT_FOUND, f"Method not found: {method}")

            return {"jsonrpc": "2.0", "result": result, "id": request_id}

        except ValueError as e:
            # Pydantic validation error or malformed positional params
            logger.warning(f"Invalid params for {method}: {e}")
            return self._error_response(
                request_id,
                ErrorCode.INVALID_PARAMS,
                f"Invalid params: {e}",
                {"details": str(e)},
            )

        except WmctlError as e:
            logger.error(f"Error handling request {method}: {e}")
            return {"jsonrpc": "2.0", "error": e.to_dict(), "id": request_id}

        except Exception as e:
            logger.error(f"Error handling request {method}: {type(e).__name__}: {e}", exc_info=True)
            return self._error_response(request_id, ErrorCode.INTERNAL_ERROR, f"Internal error: {e}")
