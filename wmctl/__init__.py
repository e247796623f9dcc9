"""wmctl daemon

Window control service for a Sway/i3 desktop session.

This package provides a long-running daemon that:
- Keeps one IPC connection to the window manager
- Lists windows in a stable, creation-ordered form with canonical hex ids
- Activates, resizes and moves windows and switches workspaces on request
- Cycles focus between windows of the same or other applications
- Launches applications and places their first window on the active workspace
- Exposes a JSON-RPC socket for the wmctl CLI and other clients

License: MIT
Version: 1.0.0
"""

__version__ = "1.0.0"
