"""
Unit tests for data models: records, results, requests and config.
"""

import pytest
from pydantic import ValidationError

from wmctl.models.config import ServiceConfig
from wmctl.models.launch import LaunchState, LaunchWatch
from wmctl.models.requests import LaunchParams, NoParams, ResizeParams, WindowIdParams
from wmctl.models.results import FocusByClassCode, OperationResult, Outcome
from wmctl.models.window import WindowRecord
from wmctl.window_system import Subscription


class TestWindowRecord:
    def test_to_line(self):
        record = WindowRecord(5, "0x3fa2", 1, "navigator.firefox", "Mozilla Firefox")
        assert record.to_line() == "0x3fa2 1 navigator.firefox Mozilla Firefox"

    def test_pinned_visible_everywhere(self):
        record = WindowRecord(5, "0x1", -1, "a.a", "")
        assert record.is_pinned
        assert record.is_visible_on(0)
        assert record.is_visible_on(7)

    def test_sort_key_order(self):
        record = WindowRecord(5, "0x1", 2, "a.a", "t")
        assert record.sort_key() == (5, 2, "a.a", "t", "0x1")


class TestOperationResult:
    def test_truthiness(self):
        assert OperationResult.success()
        assert not OperationResult.failure(Outcome.NOT_FOUND, "missing")

    def test_focus_by_class_codes(self):
        assert [int(c) for c in FocusByClassCode] == [0, 1, 2]


class TestRequestParams:
    def test_object_params(self):
        params = ResizeParams.parse_params({"id": "0x1", "width": 800, "height": 600})
        assert (params.id, params.width, params.height) == ("0x1", 800, 600)

    def test_positional_params(self):
        params = ResizeParams.parse_params(["0x1", 800, 600])
        assert params.width == 800

    def test_too_many_positional(self):
        with pytest.raises(ValueError):
            WindowIdParams.parse_params(["0x1", "extra"])

    def test_missing_field(self):
        with pytest.raises(ValidationError):
            LaunchParams.parse_params({"path": "foot"})

    def test_null_params(self):
        assert NoParams.parse_params(None) == NoParams()

    def test_wrong_type(self):
        with pytest.raises(ValidationError):
            ResizeParams.parse_params({"id": "0x1", "width": "wide", "height": 600})


class TestServiceConfig:
    def test_defaults(self):
        config = ServiceConfig()
        assert config.denylisted_classes == ["copyq.copyq", "com.github.hluk.copyq.com.github.hluk.copyq"]
        assert config.launch_timeout == 10.0
        assert config.class_change_timeout == 5.0
        assert config.terminal_width_fraction == 0.4
        assert config.terminal_height_fraction == 0.5

    def test_denylist_normalized(self):
        config = ServiceConfig(denylisted_classes=[" CopyQ.CopyQ ", ""])
        assert config.denylisted_classes == ["copyq.copyq"]
        assert config.is_denylisted("copyq.copyq")

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            ServiceConfig(launch_timeout=0)

    def test_log_level_uppercased(self):
        assert ServiceConfig(log_level="debug").log_level == "DEBUG"


class TestLaunchWatch:
    def test_release_all_cancels_everything(self):
        released = []
        watch = LaunchWatch(1, "foot", "foot.foot", 10)
        watch.created_subscription = Subscription(lambda: released.append("created"))
        watch.release_all()
        watch.release_all()
        assert released == ["created"]

    def test_terminal_states(self):
        assert LaunchState.MATCHED.is_terminal
        assert LaunchState.OUTER_TIMED_OUT.is_terminal
        assert not LaunchState.SUB_TIMED_OUT.is_terminal
        assert not LaunchState.WATCHING.is_terminal
