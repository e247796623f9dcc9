#!/usr/bin/env python3
"""
wmctl CLI

Command-line client for the wmctl daemon. Sends one JSON-RPC request per
invocation and prints the result.

Exit status is 0 when the operation succeeded, 1 when it returned false or
the daemon could not be reached. ``focus-class`` exits with the FocusByCls
code itself (0 focused, 1 no match, 2 activation failed).
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .constants import ConfigPaths

Params = Union[Dict[str, Any], List[Any], None]


class WmctlCLI:
    """CLI client for the wmctl daemon."""

    def __init__(self, socket_path: Optional[Path] = None):
        self.socket_path = socket_path or ConfigPaths.socket_path()

    async def send_request(self, method: str, params: Params = None) -> Any:
        """
        Send JSON-RPC request to daemon.

        Args:
            method: RPC method name
            params: Method parameters (object or positional array)

        Returns:
            The ``result`` member of the response

        Raises:
            ConnectionError: If cannot connect to daemon
            RuntimeError: If the daemon returned an error object
        """
        if not self.socket_path.exists():
            raise ConnectionError(f"Daemon not running (socket not found: {self.socket_path})")

        request = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params if params is not None else {},
            "id": 1,
        }

        try:
            reader, writer = await asyncio.open_unix_connection(str(self.socket_path))
        except OSError as e:
            raise ConnectionError(f"Cannot connect to daemon at {self.socket_path}: {e}")

        try:
            writer.write((json.dumps(request) + "\n").encode())
            await writer.drain()
            data = await reader.readline()
        finally:
            writer.close()
            await writer.wait_closed()

        if not data:
            raise ConnectionError("Daemon closed the connection without replying")

        response = json.loads(data.decode())
        if "error" in response:
            error = response["error"]
            raise RuntimeError(f"RPC error {error.get('code')}: {error.get('message')}")

        return response.get("result")

    @staticmethod
    def _bool_status(result: Any) -> int:
        print("true" if result else "false")
        return 0 if result else 1

    async def cmd_list(self, args) -> int:
        text = await self.send_request("ListWindows")
        if text:
            print(text)
        return 0

    async def cmd_active_workspace(self, args) -> int:
        print(await self.send_request("GetActiveWorkspace"))
        return 0

    async def cmd_active_window(self, args) -> int:
        window_id = await self.send_request("GetActiveWindow")
        print(window_id)
        return 0 if window_id else 1

    async def cmd_activate(self, args) -> int:
        return self._bool_status(await self.send_request("ActivateById", {"id": args.id}))

    async def cmd_focus(self, args) -> int:
        """Cycle focus: focus {next,prev} {same,other,any}."""
        direction = "Next" if args.direction == "next" else "Prev"
        scope = {"same": "Same", "other": "Other", "any": "Any"}[args.scope]
        return self._bool_status(await self.send_request(f"Focus{direction}{scope}AppWindow"))

    async def cmd_resize(self, args) -> int:
        params = {"id": args.id, "width": args.width, "height": args.height}
        return self._bool_status(await self.send_request("ResizeById", params))

    async def cmd_move(self, args) -> int:
        params = {"id": args.id, "index": args.index}
        return self._bool_status(await self.send_request("MoveToWorkspaceById", params))

    async def cmd_switch(self, args) -> int:
        return self._bool_status(await self.send_request("SwitchWorkspace", {"index": args.index}))

    async def cmd_focus_class(self, args) -> int:
        code = int(await self.send_request("FocusByCls", {"cls": args.cls}))
        print(code)
        return code

    async def cmd_launch(self, args) -> int:
        params = {"path": args.path, "app_id": args.app_id}
        return self._bool_status(await self.send_request("LaunchHere", params))

    async def cmd_info(self, args) -> int:
        info = await self.send_request("daemon.info")
        if args.json:
            print(json.dumps(info, indent=2))
            return 0
        print(f"{info['service']} {info['version']} (contract v{info['contract_version']})")
        print(f"capabilities: {', '.join(info['capabilities'])}")
        return 0

    async def cmd_launches(self, args) -> int:
        stats = await self.send_request("launch.stats")
        pending = await self.send_request("launch.pending")
        print(json.dumps({"stats": stats, "pending": pending}, indent=2))
        return 0

    async def cmd_call(self, args) -> int:
        """Raw JSON-RPC call for scripting."""
        params = json.loads(args.params) if args.params else None
        print(json.dumps(await self.send_request(args.method, params)))
        return 0

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(description="Window control client", prog="wmctl")
        parser.add_argument("--socket", type=Path, help="Daemon socket path")

        subparsers = parser.add_subparsers(dest="command", help="Command to execute")

        subparsers.add_parser("list", help="List windows: id workspace class title")
        subparsers.add_parser("active-workspace", help="Print the active workspace index")
        subparsers.add_parser("active-window", help="Print the focused window id")

        activate_parser = subparsers.add_parser("activate", help="Activate a window by id")
        activate_parser.add_argument("id", help="Window id, e.g. 0x3fa2")

        focus_parser = subparsers.add_parser("focus", help="Cycle focus on the active workspace")
        focus_parser.add_argument("direction", choices=["next", "prev"])
        focus_parser.add_argument("scope", choices=["same", "other", "any"], help="Class policy")

        resize_parser = subparsers.add_parser("resize", help="Resize a window by id")
        resize_parser.add_argument("id")
        resize_parser.add_argument("width", type=int)
        resize_parser.add_argument("height", type=int)

        move_parser = subparsers.add_parser("move", help="Move a window to a workspace")
        move_parser.add_argument("id")
        move_parser.add_argument("index", type=int)

        switch_parser = subparsers.add_parser("switch", help="Switch to a workspace by index")
        switch_parser.add_argument("index", type=int)

        focus_class_parser = subparsers.add_parser("focus-class", help="Focus a window by class key")
        focus_class_parser.add_argument("cls", help="Class key, e.g. firefox.firefox")

        launch_parser = subparsers.add_parser("launch", help="Launch and place on the active workspace")
        launch_parser.add_argument("path", help="Command to spawn")
        launch_parser.add_argument("app_id", help="Expected class key of the new window")

        info_parser = subparsers.add_parser("info", help="Daemon version and capabilities")
        info_parser.add_argument("--json", action="store_true", help="Output as JSON")

        subparsers.add_parser("launches", help="In-flight launches and launch statistics")

        call_parser = subparsers.add_parser("call", help="Send a raw JSON-RPC request")
        call_parser.add_argument("method")
        call_parser.add_argument("params", nargs="?", help="JSON object or array")

        return parser

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Run CLI."""
        parser = self.build_parser()
        args = parser.parse_args(argv)

        if not args.command:
            parser.print_help()
            return 1

        if args.socket:
            self.socket_path = args.socket

        cmd_map = {
            "list": self.cmd_list,
            "active-workspace": self.cmd_active_workspace,
            "active-window": self.cmd_active_window,
            "activate": self.cmd_activate,
            "focus": self.cmd_focus,
            "resize": self.cmd_resize,
            "move": self.cmd_move,
            "switch": self.cmd_switch,
            "focus-class": self.cmd_focus_class,
            "launch": self.cmd_launch,
            "info": self.cmd_info,
            "launches": self.cmd_launches,
            "call": self.cmd_call,
        }

        handler = cmd_map[args.command]

        try:
            return asyncio.run(handler(args))
        except KeyboardInterrupt:
            print("\nInterrupted", file=sys.stderr)
            return 130
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1


def main():
    """Main entry point."""
    cli = WmctlCLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
