"""Choose between live-reload and one-shot execution and build the session."""

from __future__ import annotations

from collections.abc import Sequence

from devlaunch.config import Settings
from devlaunch.devices.interfaces import TargetDevice
from devlaunch.launcher.interfaces import ExecutionEngine
from devlaunch.launcher.sessions import LiveReloadSession, OneShotSession
from devlaunch.launcher.targets import DeviceBuildTarget
from devlaunch.shared.enums import RunStrategy
from devlaunch.shared.models import DebuggingOptions, RunRequest


def select_strategy(request: RunRequest) -> RunStrategy:
    """Live reload iff the hot flag is on and the build is a debug build."""
    if request.hot and request.build_info.is_debug:
        return RunStrategy.LIVE_RELOAD
    return RunStrategy.ONE_SHOT


def build_targets(devices: Sequence[TargetDevice], request: RunRequest) -> list[DeviceBuildTarget]:
    return [
        DeviceBuildTarget(
            device=device,
            track_widget_creation=request.track_widget_creation,
            output_dill=request.output_dill,
            filesystem_roots=request.filesystem_roots,
            filesystem_scheme=request.filesystem_scheme,
            view_filter=request.isolate_filter,
            target_platform=request.target_platform,
        )
        for device in devices
    ]


def create_session(
    strategy: RunStrategy,
    devices: Sequence[TargetDevice],
    *,
    request: RunRequest,
    debugging: DebuggingOptions,
    engine: ExecutionEngine,
    settings: Settings,
) -> LiveReloadSession | OneShotSession:
    """Construct the session for ``strategy``; called once per invocation."""
    targets = build_targets(devices, request)
    if strategy == RunStrategy.LIVE_RELOAD:
        return LiveReloadSession(
            engine,
            targets,
            entry_point=request.target,
            debugging=debugging,
            application_binary=request.application_binary,
            project_root=request.project_root,
            packages_file=request.packages_file,
            ipv6=request.ipv6,
            stay_resident=request.resident,
            benchmark=request.benchmark,
            save_compilation_trace=request.save_compilation_trace,
            benchmark_file=settings.benchmark_file,
            compilation_trace_file=settings.compilation_trace_file,
        )
    return OneShotSession(
        engine,
        targets,
        entry_point=request.target,
        debugging=debugging,
        application_binary=request.application_binary,
        project_root=request.project_root,
        packages_file=request.packages_file,
        ipv6=request.ipv6,
        stay_resident=request.resident,
        trace_startup=request.trace_startup,
    )
