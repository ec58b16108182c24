"""Shared pytest fixtures for the devlaunch test suite."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from devlaunch.config import Settings
from devlaunch.shared.enums import BuildMode, TargetPlatform
from devlaunch.shared.models import BuildInfo, RunRequest


class FakeDevice:
    """In-memory ``TargetDevice`` with canned capability answers."""

    def __init__(
        self,
        device_id: str,
        *,
        name: str | None = None,
        emulator: bool = False,
        hardware_rendering: bool = False,
        live_reload: bool = True,
        platform: TargetPlatform = TargetPlatform.ANDROID_ARM64,
    ) -> None:
        self._id = device_id
        self._name = name or device_id
        self._emulator = emulator
        self._hardware_rendering = hardware_rendering
        self._live_reload = live_reload
        self._platform = platform

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def supports_live_reload(self) -> bool:
        return self._live_reload

    async def is_local_emulator(self) -> bool:
        return self._emulator

    async def supports_hardware_rendering(self) -> bool:
        return self._hardware_rendering

    async def target_platform(self) -> TargetPlatform:
        return self._platform


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.calls = 0

    def __call__(self) -> datetime:
        self.calls += 1
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest.fixture()
def make_device() -> Callable[..., FakeDevice]:
    return FakeDevice


@pytest.fixture()
def clock() -> StepClock:
    return StepClock()


@pytest.fixture()
def settings() -> Settings:
    """Return a Settings instance with test defaults."""
    return Settings(
        adb_bin="adb",
        launch_activity="com.example.app/.MainActivity",
        usage_endpoint="",
    )


@pytest.fixture()
def make_request() -> Callable[..., RunRequest]:
    def _make(mode: BuildMode = BuildMode.DEBUG, **overrides: object) -> RunRequest:
        return RunRequest(build_info=BuildInfo(mode=mode), **overrides)

    return _make


@pytest.fixture()
def mock_engine() -> AsyncMock:
    """Mock ExecutionEngine whose apps exit cleanly."""
    mock = AsyncMock()
    mock.build.return_value = None
    mock.launch.return_value = None
    mock.wait_for_exit.return_value = 0
    mock.restart.return_value = None
    mock.stop.return_value = None
    mock.save_compilation_trace.return_value = None
    return mock
