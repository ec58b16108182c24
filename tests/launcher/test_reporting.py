"""Tests for usage reporting."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone

import httpx
import pytest
import respx

from devlaunch.launcher.reporting import (
    CompositeReporter,
    HttpUsageReporter,
    LoggingReporter,
    usage_path,
    usage_values,
)
from devlaunch.shared.enums import TargetPlatform
from devlaunch.shared.models import LaunchResult

_ENDPOINT = "http://usage.local/events"


@pytest.fixture
def result() -> LaunchResult:
    return LaunchResult(
        exit_code=0,
        started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        label_parts=("hot", "debug", "android-arm64"),
    )


async def test_usage_path(make_device: Callable[..., object]) -> None:
    one = [make_device("a", platform=TargetPlatform.ANDROID_X86)]
    many = [make_device("a"), make_device("b")]

    assert await usage_path("run", None) == "run"
    assert await usage_path("run", one) == "run/android-x86"  # type: ignore[arg-type]
    assert await usage_path("run", many) == "run/all"  # type: ignore[arg-type]


async def test_usage_values(make_device: Callable[..., object]) -> None:
    single = await usage_values([make_device("emu", emulator=True, platform=TargetPlatform.ANDROID_X64)])  # type: ignore[list-item]
    multiple = await usage_values([make_device("a"), make_device("b", emulator=True)])  # type: ignore[list-item]

    assert single == {"cd3": "true", "cd4": "android-x64"}
    assert multiple == {"cd3": "false", "cd4": "multiple"}


async def test_logging_reporter(result: LaunchResult, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)
    await LoggingReporter().report("run/android-arm64", result, elapsed_seconds=1.5)
    assert "run/android-arm64 (hot-debug-android-arm64) exit=0 in 1.500s" in caplog.text


class TestHttpUsageReporter:
    @respx.mock
    async def test_posts_event(self, result: LaunchResult) -> None:
        route = respx.post(_ENDPOINT).mock(return_value=httpx.Response(204))

        await HttpUsageReporter(_ENDPOINT).report(
            "run/android-arm64", result, elapsed_seconds=2.0, custom_dimensions={"cd3": "false"}
        )

        assert route.called
        body = json.loads(route.calls.last.request.content)
        assert body["command"] == "run/android-arm64"
        assert body["label"] == "hot-debug-android-arm64"
        assert body["elapsed_ms"] == 2000
        assert body["dimensions"] == {"cd3": "false"}
        assert body["started_at"] == "2024-01-01T00:00:00+00:00"

    @respx.mock
    async def test_server_error_is_swallowed(self, result: LaunchResult, caplog: pytest.LogCaptureFixture) -> None:
        respx.post(_ENDPOINT).mock(return_value=httpx.Response(500))

        await HttpUsageReporter(_ENDPOINT).report("run", result)

        assert "usage endpoint returned 500" in caplog.text

    @respx.mock
    async def test_connection_error_is_swallowed(self, result: LaunchResult) -> None:
        respx.post(_ENDPOINT).mock(side_effect=httpx.ConnectError("refused"))

        await HttpUsageReporter(_ENDPOINT).report("run", result)


async def test_composite_fans_out(result: LaunchResult) -> None:
    seen: list[str] = []

    class Recorder:
        async def report(self, command_path: str, result: LaunchResult, **kwargs: object) -> None:
            seen.append(command_path)

    await CompositeReporter(Recorder(), Recorder()).report("run", result)

    assert seen == ["run", "run"]
