"""
Unit tests for config loading and the debounced reload handler.
"""

import asyncio
import json
from unittest.mock import MagicMock

import pytest

from wmctl.config import DebouncedReloadHandler, load_service_config
from wmctl.constants import ConfigPaths


class TestLoadServiceConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_service_config(tmp_path / "config.json")
        assert config.denylisted_classes == ["copyq.copyq", "com.github.hluk.copyq.com.github.hluk.copyq"]

    def test_loads_values(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"launch_timeout": 3, "denylisted_classes": ["Keepass.Keepass"]}))

        config = load_service_config(path)

        assert config.launch_timeout == 3.0
        assert config.denylisted_classes == ["keepass.keepass"]

    def test_invalid_json_gives_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        assert load_service_config(path).launch_timeout == 10.0

    def test_invalid_values_give_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"launch_timeout": -1}))
        assert load_service_config(path).launch_timeout == 10.0

    def test_non_object_gives_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        assert load_service_config(path).class_change_timeout == 5.0


class TestDebouncedReloadHandler:
    @pytest.mark.asyncio
    async def test_rapid_events_trigger_once(self):
        callback = MagicMock()
        handler = DebouncedReloadHandler(callback, debounce_ms=20, target_filename="config.json")
        handler.set_event_loop(asyncio.get_running_loop())

        event = MagicMock(is_directory=False, src_path="/tmp/x/config.json", dest_path=None)
        for _ in range(5):
            handler.on_modified(event)

        await asyncio.sleep(0.1)
        callback.assert_called_once()

    @pytest.mark.asyncio
    async def test_other_files_ignored(self):
        callback = MagicMock()
        handler = DebouncedReloadHandler(callback, debounce_ms=10, target_filename="config.json")
        handler.set_event_loop(asyncio.get_running_loop())

        handler.on_created(MagicMock(is_directory=False, src_path="/tmp/x/other.json", dest_path=None))

        await asyncio.sleep(0.05)
        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_atomic_rename_triggers(self):
        callback = MagicMock()
        handler = DebouncedReloadHandler(callback, debounce_ms=10, target_filename="config.json")
        handler.set_event_loop(asyncio.get_running_loop())

        handler.on_moved(MagicMock(is_directory=False, src_path="/tmp/x/.config.json.swp", dest_path="/tmp/x/config.json"))

        await asyncio.sleep(0.05)
        callback.assert_called_once()


class TestConfigPaths:
    def test_socket_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WMCTL_SOCKET", str(tmp_path / "s.sock"))
        assert ConfigPaths.socket_path() == tmp_path / "s.sock"

    def test_default_socket(self, monkeypatch):
        monkeypatch.delenv("WMCTL_SOCKET", raising=False)
        assert ConfigPaths.socket_path() == ConfigPaths.IPC_SOCKET_PATH
