"""
Unit tests for window control operations.
"""

import pytest

from tests.fixtures.fake_window_system import FakeWindow, FakeWindowSystem
from wmctl.errors import ErrorCode, InvalidArgument
from wmctl.models.results import FocusByClassCode, Outcome
from wmctl.services.window_control import (
    WindowControl,
    fallback_timestamp,
    validate_size,
    validate_workspace_index,
)
from wmctl.services.window_registry import WindowRegistry
from wmctl.window_system import Capability, Rect


def build(windows=(), **kwargs):
    system = FakeWindowSystem(list(windows), **kwargs)
    registry = WindowRegistry(system)
    return system, WindowControl(system, registry)


class TestActivate:
    """Tests for WindowControl.activate()."""

    @pytest.mark.asyncio
    async def test_activates_on_current_workspace(self):
        window = FakeWindow(xid=0x10, workspace=0)
        system, control = build([window])

        result = await control.activate("0x10")

        assert result.ok
        assert system.focus is window
        assert system.calls_named("activate_workspace") == []

    @pytest.mark.asyncio
    async def test_switches_workspace_first(self):
        window = FakeWindow(xid=0x10, workspace=2)
        system, control = build([window], active_workspace=0)

        assert await control.activate("0x10")
        names = [c[0] for c in system.mutations]
        assert names.index("activate_workspace") < names.index("activate_window")
        assert system.active_workspace == 2

    @pytest.mark.asyncio
    async def test_workspace_switch_failure_still_activates(self):
        window = FakeWindow(xid=0x10, workspace=2)
        system, control = build([window])
        system.fail["activate_workspace"] = RuntimeError("nope")

        assert await control.activate("0x10")
        assert system.focus is window

    @pytest.mark.asyncio
    async def test_unminimizes(self):
        window = FakeWindow(xid=0x10, minimized=True)
        system, control = build([window])

        assert await control.activate("0x10")
        assert window.minimized is False

    @pytest.mark.asyncio
    async def test_uses_window_system_time(self):
        window = FakeWindow(xid=0x10)
        system, control = build([window], time=777)

        await control.activate("0x10")
        assert system.calls_named("activate_window")[0][2] == 777

    @pytest.mark.asyncio
    async def test_fallback_clock_without_event_time(self):
        window = FakeWindow(xid=0x10)
        caps = frozenset(Capability) - {Capability.EVENT_TIME}
        system, control = build([window], capabilities=caps)

        await control.activate("0x10")
        timestamp = system.calls_named("activate_window")[0][2]
        assert 0 <= timestamp <= 0xFFFFFFFF

    @pytest.mark.asyncio
    async def test_unknown_id(self):
        system, control = build([FakeWindow(xid=0x10)])
        result = await control.activate("0x99")
        assert result.outcome is Outcome.NOT_FOUND
        assert not result

    @pytest.mark.asyncio
    async def test_malformed_id(self):
        system, control = build([FakeWindow(xid=0x10)])
        result = await control.activate("zzz")
        assert result.outcome is Outcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_activation_unavailable(self):
        caps = frozenset(Capability) - {Capability.ACTIVATE}
        system, control = build([FakeWindow(xid=0x10)], capabilities=caps)
        result = await control.activate("0x10")
        assert result.outcome is Outcome.UNAVAILABLE

    def test_fallback_timestamp_range(self):
        assert 0 <= fallback_timestamp() <= 0xFFFFFFFF


class TestResize:
    """Tests for WindowControl.resize()."""

    @pytest.mark.asyncio
    async def test_keeps_position(self):
        window = FakeWindow(xid=0x10, rect=Rect(100, 50, 300, 200))
        system, control = build([window])

        assert await control.resize("0x10", 800, 600)
        assert system.calls_named("move_resize_frame") == [
            ("move_resize_frame", window, True, 100, 50, 800, 600)
        ]

    @pytest.mark.asyncio
    async def test_origin_without_frame_rect(self):
        window = FakeWindow(xid=0x10, rect=Rect(100, 50, 300, 200))
        caps = frozenset(Capability) - {Capability.FRAME_RECT}
        system, control = build([window], capabilities=caps)

        assert await control.resize("0x10", 800, 600)
        assert system.calls_named("move_resize_frame")[0][3:5] == (0, 0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("width,height", [(0, 600), (800, 0), (-5, 600), (800, -5)])
    async def test_rejects_non_positive_without_mutation(self, width, height):
        system, control = build([FakeWindow(xid=0x10)])

        result = await control.resize("0x10", width, height)

        assert result.outcome is Outcome.INVALID_ARGUMENT
        assert system.calls == []

    @pytest.mark.asyncio
    async def test_unknown_window(self):
        system, control = build()
        result = await control.resize("0x10", 800, 600)
        assert result.outcome is Outcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_backend_failure(self):
        system, control = build([FakeWindow(xid=0x10)])
        system.fail["move_resize_frame"] = RuntimeError("denied")
        result = await control.resize("0x10", 800, 600)
        assert result.outcome is Outcome.FAILED


class TestWorkspaces:
    """Tests for move_to_workspace() and switch_workspace()."""

    @pytest.mark.asyncio
    async def test_move_to_workspace(self):
        window = FakeWindow(xid=0x10, workspace=0)
        system, control = build([window])

        assert await control.move_to_workspace("0x10", 2)
        assert window.workspace == 2

    @pytest.mark.asyncio
    async def test_move_pinned_is_noop_success(self):
        window = FakeWindow(xid=0x10, pinned=True)
        system, control = build([window])

        assert await control.move_to_workspace("0x10", 2)
        assert system.calls_named("change_workspace") == []

    @pytest.mark.asyncio
    async def test_move_to_missing_workspace(self):
        system, control = build([FakeWindow(xid=0x10)], workspace_count=2)
        result = await control.move_to_workspace("0x10", 5)
        assert result.outcome is Outcome.NOT_FOUND
        assert system.calls_named("change_workspace") == []

    @pytest.mark.asyncio
    async def test_move_negative_index_rejected(self):
        system, control = build([FakeWindow(xid=0x10)])
        result = await control.move_to_workspace("0x10", -2)
        assert result.outcome is Outcome.INVALID_ARGUMENT
        assert system.mutations == []

    @pytest.mark.asyncio
    async def test_switch_workspace(self):
        system, control = build()
        assert await control.switch_workspace(3)
        assert system.active_workspace == 3

    @pytest.mark.asyncio
    async def test_switch_negative(self):
        system, control = build()
        result = await control.switch_workspace(-1)
        assert result.outcome is Outcome.INVALID_ARGUMENT
        assert system.mutations == []

    @pytest.mark.asyncio
    async def test_switch_missing(self):
        system, control = build(workspace_count=2)
        result = await control.switch_workspace(2)
        assert result.outcome is Outcome.NOT_FOUND


class TestFocusByClass:
    """Tests for WindowControl.focus_by_class() codes."""

    @pytest.mark.asyncio
    async def test_success(self):
        window = FakeWindow(instance="Navigator", cls="firefox")
        system, control = build([window])

        assert await control.focus_by_class("  Navigator.Firefox ") == FocusByClassCode.SUCCESS
        assert system.focus is window

    @pytest.mark.asyncio
    async def test_no_match(self):
        system, control = build([FakeWindow(instance="foot", cls="foot")])
        assert await control.focus_by_class("firefox.firefox") == FocusByClassCode.NO_MATCH

    @pytest.mark.asyncio
    async def test_empty_input(self):
        system, control = build([FakeWindow()])
        assert await control.focus_by_class("   ") == FocusByClassCode.NO_MATCH

    @pytest.mark.asyncio
    async def test_activation_failure(self):
        system, control = build([FakeWindow(instance="foot", cls="foot")])
        system.fail["activate_window"] = RuntimeError("denied")
        assert await control.focus_by_class("foot.foot") == FocusByClassCode.ACTIVATION_FAILED

    @pytest.mark.asyncio
    async def test_prefers_active_workspace(self):
        elsewhere = FakeWindow(instance="foot", cls="foot", workspace=1, seq=1)
        here = FakeWindow(instance="foot", cls="foot", workspace=0, seq=2)
        system, control = build([elsewhere, here], active_workspace=0)

        assert await control.focus_by_class("foot.foot") == FocusByClassCode.SUCCESS
        assert system.focus is here

    @pytest.mark.asyncio
    async def test_off_workspace_match_switches(self):
        elsewhere = FakeWindow(instance="foot", cls="foot", workspace=1)
        system, control = build([elsewhere], active_workspace=0)

        assert await control.focus_by_class("foot.foot") == FocusByClassCode.SUCCESS
        assert system.active_workspace == 1

    @pytest.mark.asyncio
    async def test_enumeration_failure(self):
        system, control = build([FakeWindow()])
        system.fail["list_windows"] = RuntimeError("gone")
        assert await control.focus_by_class("app.app") == FocusByClassCode.NO_MATCH


class TestValidation:
    """Argument checks shared by the control operations."""

    def test_size_accepts_numeric_strings(self):
        assert validate_size("800", 600) == (800, 600)

    @pytest.mark.parametrize("width,height", [(0, 1), (1, -1), ("wide", 1), (None, 1)])
    def test_size_rejected(self, width, height):
        with pytest.raises(InvalidArgument) as exc_info:
            validate_size(width, height)
        assert exc_info.value.code is ErrorCode.INVALID_ARGUMENT

    def test_workspace_index(self):
        assert validate_workspace_index("2") == 2
        with pytest.raises(InvalidArgument):
            validate_workspace_index(-1)
