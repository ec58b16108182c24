"""Protocol interfaces for launcher dependency injection."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from devlaunch.devices.interfaces import TargetDevice
from devlaunch.launcher.signal import AppStartedSignal
from devlaunch.launcher.targets import DeviceBuildTarget
from devlaunch.shared.models import DebuggingOptions, LaunchResult


@runtime_checkable
class RunnableSession(Protocol):
    """One execution strategy bound to a validated set of devices."""

    async def run(
        self,
        *,
        app_started: AppStartedSignal,
        route: str | None = None,
        should_build: bool = True,
    ) -> int:
        """Build, launch, and (when resident) supervise the app.

        Args:
            app_started: Fired once every device has launched the app.
            route: Initial route to open.
            should_build: Build the app before launching.

        Returns:
            Process-style exit code; 0 on success.
        """
        ...


@runtime_checkable
class ExecutionEngine(Protocol):
    """Per-device build/launch primitives used by both sessions."""

    async def build(
        self, target: DeviceBuildTarget, *, entry_point: str, packages_file: str | None = None
    ) -> None:
        """Build the app for one device.

        Raises:
            EngineError: If the build fails.
        """
        ...

    async def launch(
        self,
        target: DeviceBuildTarget,
        *,
        entry_point: str,
        debugging: DebuggingOptions,
        route: str | None = None,
        application_binary: str | None = None,
        trace_startup: bool = False,
        ipv6: bool = False,
    ) -> None:
        """Install (when needed) and start the app on one device.

        Raises:
            EngineError: If the app cannot be started.
        """
        ...

    async def wait_for_exit(self, target: DeviceBuildTarget) -> int:
        """Block until the app exits on the device and return its exit code."""
        ...

    async def restart(self, target: DeviceBuildTarget, *, entry_point: str, full_restart: bool = False) -> None:
        """Apply source changes to the running app (reload), or restart it from scratch."""
        ...

    async def stop(self, target: DeviceBuildTarget) -> None:
        """Stop the app on the device."""
        ...

    async def save_compilation_trace(self, target: DeviceBuildTarget, path: str) -> None:
        """Write the runtime compilation trace of the app to ``path``."""
        ...


@runtime_checkable
class AppHandle(Protocol):
    """A session owned by the control-protocol server."""

    async def wait_for_app_to_finish(self) -> int:
        """Block until the delegated session ends; return its exit code."""
        ...


@runtime_checkable
class ControlProtocolServer(Protocol):
    """Long-lived server that drives app sessions on behalf of a client."""

    async def start_app(
        self,
        device: TargetDevice,
        working_dir: str,
        target_file: str,
        route: str | None,
        debugging: DebuggingOptions,
        live_reload: bool,
        *,
        application_binary: str | None = None,
        track_widget_creation: bool = False,
        project_root: str | None = None,
        packages_file: str | None = None,
        output_dill: str | None = None,
        ipv6: bool = False,
    ) -> AppHandle:
        """Start the app and return a handle to the running session.

        Raises:
            Exception: Any failure, with a descriptive message.
        """
        ...


@runtime_checkable
class ReportingSink(Protocol):
    """Receives the final result for timing/analytics."""

    async def report(
        self,
        command_path: str,
        result: LaunchResult,
        *,
        elapsed_seconds: float | None = None,
        custom_dimensions: Mapping[str, str] | None = None,
    ) -> None: ...
