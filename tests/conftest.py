"""Pytest configuration and shared fixtures for wmctl tests."""

import pytest

from tests.fixtures.fake_window_system import FakeWindow, FakeWindowSystem
from wmctl.models.config import ServiceConfig
from wmctl.services.window_control import WindowControl
from wmctl.services.window_registry import WindowRegistry


@pytest.fixture
def config():
    """Default config with short timers so launch tests finish quickly."""
    return ServiceConfig(
        launch_timeout=0.5,
        class_change_timeout=0.2,
        terminal_settle_delay=0.01,
    )


@pytest.fixture
def window_system():
    """Empty fake window system with every capability."""
    return FakeWindowSystem()


@pytest.fixture
def registry(window_system):
    return WindowRegistry(window_system)


@pytest.fixture
def control(window_system, registry):
    return WindowControl(window_system, registry)


@pytest.fixture
def firefox():
    return FakeWindow(instance="Navigator", cls="firefox", title="Mozilla Firefox", workspace=0)
