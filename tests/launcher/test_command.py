"""End-to-end tests for RunCommand with fake collaborators."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from unittest.mock import AsyncMock

import aiofiles
import pytest

from devlaunch.config import Settings
from devlaunch.launcher.command import RunCommand
from devlaunch.shared.enums import BuildMode, TargetPlatform
from devlaunch.shared.exceptions import (
    AdbError,
    EngineError,
    LaunchFailed,
    ModeNotSupportedOnEmulator,
    NoDevicesFound,
    ReloadUnsupported,
    SessionExitFailure,
    UnsupportedCombination,
)
from devlaunch.shared.models import RunRequest


class StaticDiscovery:
    def __init__(self, devices: Sequence[object] | None, *, all_requested: bool = False) -> None:
        self._devices = devices
        self._all_requested = all_requested

    async def resolve_target_devices(self) -> Sequence[object] | None:
        return self._devices

    def has_requested_all_devices(self) -> bool:
        return self._all_requested


@pytest.fixture
def reporter() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def make_command(
    mock_engine: AsyncMock, settings: Settings, reporter: AsyncMock, clock: Callable[[], object]
) -> Callable[..., RunCommand]:
    def _make(devices: Sequence[object] | None, *, all_requested: bool = False, **kwargs: object) -> RunCommand:
        return RunCommand(
            discovery=StaticDiscovery(devices, all_requested=all_requested),  # type: ignore[arg-type]
            engine=mock_engine,
            settings=settings,
            reporter=reporter,
            clock=clock,  # type: ignore[arg-type]
            **kwargs,  # type: ignore[arg-type]
        )

    return _make


async def test_scenario_a_hot_debug_on_physical_device(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
    mock_engine: AsyncMock,
    reporter: AsyncMock,
) -> None:
    device = make_device("phone", platform=TargetPlatform.ANDROID_ARM64)
    command = make_command([device])

    result = await command.run(make_request(BuildMode.DEBUG))

    assert result.exit_code == 0
    assert result.label_parts == ("hot", "debug", "android-arm64")
    assert result.started_at is not None
    mock_engine.build.assert_awaited_once()
    reporter.report.assert_awaited_once()
    path, reported = reporter.report.await_args.args
    assert path == "run/android-arm64"
    assert reported is result
    assert reporter.report.await_args.kwargs["custom_dimensions"] == {"cd3": "false", "cd4": "android-arm64"}


async def test_scenario_b_release_on_emulator_fails_before_session(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
    mock_engine: AsyncMock,
    reporter: AsyncMock,
) -> None:
    command = make_command([make_device("emulator-5554", emulator=True, hardware_rendering=False)])

    with pytest.raises(ModeNotSupportedOnEmulator):
        await command.run(make_request(BuildMode.RELEASE))

    mock_engine.build.assert_not_called()
    mock_engine.launch.assert_not_called()
    reporter.report.assert_not_called()


async def test_scenario_c_machine_start_failure(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
    mock_engine: AsyncMock,
) -> None:
    server = AsyncMock()
    server.start_app.side_effect = RuntimeError("daemon rejected app.start")
    command = make_command([make_device("phone")], control_server=server)

    with pytest.raises(LaunchFailed) as info:
        await command.run(make_request(machine=True))

    assert info.value.message == "daemon rejected app.start"
    assert info.value.exit_code is None
    mock_engine.launch.assert_not_called()


async def test_machine_mode_with_two_devices(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
) -> None:
    server = AsyncMock()
    devices = [make_device("a", live_reload=False), make_device("b", emulator=True)]
    command = make_command(devices, control_server=server)

    with pytest.raises(UnsupportedCombination):
        await command.run(make_request(BuildMode.RELEASE, machine=True))
    server.start_app.assert_not_called()


async def test_machine_mode_success(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
    mock_engine: AsyncMock,
) -> None:
    handle = AsyncMock()
    handle.wait_for_app_to_finish.return_value = 0
    server = AsyncMock()
    server.start_app.return_value = handle
    command = make_command([make_device("phone")], control_server=server)

    result = await command.run(make_request(machine=True, hot=True))

    assert result.label_parts == ("daemon",)
    assert server.start_app.await_args.args[5] is True
    mock_engine.launch.assert_not_called()


async def test_machine_mode_without_server(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
) -> None:
    with pytest.raises(LaunchFailed, match="no control-protocol server"):
        await make_command([make_device("phone")]).run(make_request(machine=True))


async def test_no_devices(make_command: Callable[..., RunCommand], make_request: Callable[..., RunRequest]) -> None:
    with pytest.raises(NoDevicesFound):
        await make_command(None).run(make_request())


async def test_all_devices_with_prebuilt_binary(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
) -> None:
    command = make_command([make_device("a")], all_requested=True)
    with pytest.raises(UnsupportedCombination):
        await command.run(make_request(application_binary="app.apk"))


async def test_reload_unsupported(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
) -> None:
    command = make_command([make_device("a", name="Legacy", live_reload=False)])
    with pytest.raises(ReloadUnsupported, match="Legacy"):
        await command.run(make_request())


async def test_cold_run_on_multiple_emulators(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
    reporter: AsyncMock,
) -> None:
    command = make_command([make_device("a", emulator=True), make_device("b", emulator=True)], all_requested=True)

    result = await command.run(make_request(hot=False))

    assert result.label_parts == ("cold", "debug", "multiple")
    assert reporter.report.await_args.args[0] == "run/all"


async def test_session_failure_propagates_exit_code(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
    mock_engine: AsyncMock,
    reporter: AsyncMock,
) -> None:
    mock_engine.wait_for_exit.return_value = 9

    with pytest.raises(SessionExitFailure) as info:
        await make_command([make_device("phone")]).run(make_request())

    assert info.value.exit_code == 9
    reporter.report.assert_not_called()


async def test_prebuilt_binary_skips_build(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
    mock_engine: AsyncMock,
) -> None:
    await make_command([make_device("phone")]).run(make_request(application_binary="app.apk"))

    mock_engine.build.assert_not_called()
    assert mock_engine.launch.await_args.kwargs["application_binary"] == "app.apk"


async def test_writes_pid_file(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
    tmp_path: Path,
) -> None:
    pid_file = tmp_path / "run.pid"

    await make_command([make_device("phone")]).run(make_request(pid_file=str(pid_file)))

    async with aiofiles.open(pid_file) as f:
        assert (await f.read()).isdigit()


async def test_elapsed_measured_to_app_start(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
    reporter: AsyncMock,
) -> None:
    # began_at is the first clock tick and the signal fires on the second.
    await make_command([make_device("phone")]).run(make_request())

    assert reporter.report.await_args.kwargs["elapsed_seconds"] == 1.0


async def test_adb_failure_during_validation_becomes_launch_failed(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
    reporter: AsyncMock,
) -> None:
    device = make_device("phone")
    timeout = AdbError("adb -s phone shell getprop timed out after 30s")
    device.is_local_emulator = AsyncMock(side_effect=timeout)  # type: ignore[attr-defined]

    with pytest.raises(LaunchFailed) as info:
        await make_command([device]).run(make_request())

    assert info.value.message == "adb -s phone shell getprop timed out after 30s"
    assert isinstance(info.value.__cause__, AdbError)
    reporter.report.assert_not_called()


async def test_engine_failure_outside_session_becomes_launch_failed(
    make_command: Callable[..., RunCommand],
    make_device: Callable[..., object],
    make_request: Callable[..., RunRequest],
) -> None:
    device = make_device("phone")
    device.target_platform = AsyncMock(side_effect=EngineError("platform query failed"))  # type: ignore[attr-defined]

    with pytest.raises(LaunchFailed, match="platform query failed"):
        await make_command([device]).run(make_request())
