"""ADB-backed execution engine for Android devices."""

from __future__ import annotations

import asyncio
import logging
import os
import posixpath
import shlex

from devlaunch.devices.adb import AdbConnection
from devlaunch.launcher.targets import DeviceBuildTarget
from devlaunch.shared.exceptions import AdbError, EngineError
from devlaunch.shared.models import DebuggingOptions

logger = logging.getLogger(__name__)


class AdbExecutionEngine:
    """Build with a shell command, then install and start an activity over ADB.

    Implements the ``ExecutionEngine`` protocol. Debugging options are passed
    to the activity as intent extras.
    """

    def __init__(
        self,
        adb: AdbConnection,
        *,
        launch_activity: str,
        build_command: str = "",
        remote_target_dir: str = "/data/local/tmp/devlaunch",
        poll_interval: float = 1.0,
    ) -> None:
        self._adb = adb
        self._activity = launch_activity
        self._package = launch_activity.split("/", 1)[0]
        self._build_command = build_command
        self._remote_dir = remote_target_dir
        self._poll_interval = poll_interval
        self._start_commands: dict[str, str] = {}

    async def build(
        self, target: DeviceBuildTarget, *, entry_point: str, packages_file: str | None = None
    ) -> None:
        if not self._build_command:
            logger.debug("no build command configured, skipping build for %s", target.name)
            return
        env = {
            **os.environ,
            "DEVLAUNCH_TARGET": entry_point,
            "DEVLAUNCH_DEVICE_ID": target.device.id,
            "DEVLAUNCH_TRACK_WIDGET_CREATION": "1" if target.track_widget_creation else "0",
        }
        if target.target_platform is not None:
            env["DEVLAUNCH_TARGET_PLATFORM"] = target.target_platform.value
        if target.output_dill:
            env["DEVLAUNCH_OUTPUT_DILL"] = target.output_dill
        if packages_file:
            env["DEVLAUNCH_PACKAGES"] = packages_file
        proc = await asyncio.create_subprocess_shell(
            self._build_command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        _stdout, stderr = await proc.communicate()
        if proc.returncode:
            raise EngineError(
                f"build failed for {target.name} (rc={proc.returncode}): {stderr.decode(errors='replace').strip()}"
            )
        logger.info("built %s for %s", entry_point, target.name)

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
        if not self._activity:
            raise EngineError("no launch activity configured (set DEVLAUNCH_LAUNCH_ACTIVITY)")
        serial = target.device.id
        command = start_command(
            self._activity,
            debugging,
            route=route,
            trace_startup=trace_startup,
            ipv6=ipv6,
            view_filter=target.view_filter,
        )
        try:
            if application_binary:
                await self._adb.install(serial, application_binary)
            output = await self._adb.shell(serial, command)
        except AdbError as exc:
            raise EngineError(str(exc)) from exc
        if "Error" in output:
            raise EngineError(f"failed to start {self._activity} on {target.name}: {output}")
        self._start_commands[serial] = command

    async def wait_for_exit(self, target: DeviceBuildTarget) -> int:
        serial = target.device.id
        while True:
            try:
                pid = await self._adb.shell(serial, f"pidof {self._package}")
            except AdbError as exc:
                # pidof exits nonzero once the process is gone
                logger.debug("pidof on %s: %s", serial, exc)
                pid = ""
            if not pid.strip():
                logger.info("application exited on %s", target.name)
                return 0
            await asyncio.sleep(self._poll_interval)

    async def restart(self, target: DeviceBuildTarget, *, entry_point: str, full_restart: bool = False) -> None:
        serial = target.device.id
        remote = posixpath.join(self._remote_dir, posixpath.basename(entry_point))
        try:
            await self._adb.push(serial, entry_point, remote)
            if full_restart:
                await self._adb.shell(serial, f"am force-stop {self._package}")
                command = self._start_commands.get(serial) or f"am start -n {self._activity}"
                await self._adb.shell(serial, command)
            else:
                await self._adb.shell(
                    serial, f"am broadcast -a {self._package}.RELOAD --es source {shlex.quote(remote)}"
                )
        except AdbError as exc:
            raise EngineError(str(exc)) from exc

    async def stop(self, target: DeviceBuildTarget) -> None:
        try:
            await self._adb.shell(target.device.id, f"am force-stop {self._package}")
        except AdbError as exc:
            logger.warning("failed to stop app on %s: %s", target.name, exc)

    async def save_compilation_trace(self, target: DeviceBuildTarget, path: str) -> None:
        remote = posixpath.join(self._remote_dir, "compilation.txt")
        try:
            await self._adb.pull(target.device.id, remote, path)
        except AdbError as exc:
            raise EngineError(f"failed to save compilation trace from {target.name}: {exc}") from exc


def start_command(
    activity: str,
    debugging: DebuggingOptions,
    *,
    route: str | None = None,
    trace_startup: bool = False,
    ipv6: bool = False,
    view_filter: str | None = None,
) -> str:
    """Build the ``am start`` shell command carrying the debugging extras."""
    parts = ["am", "start", "-a", "android.intent.action.RUN", "-f", "0x20000000"]
    flags = {
        "enable-background-compilation": True,
        "trace-startup": trace_startup,
        "ipv6": ipv6,
    }
    if debugging.debugging_enabled:
        flags.update(
            {
                "enable-checked-mode": debugging.build_info.is_debug,
                "start-paused": debugging.start_paused,
                "use-test-fonts": debugging.use_test_fonts,
                "enable-software-rendering": debugging.enable_software_rendering,
                "skia-deterministic-rendering": debugging.skia_deterministic_rendering,
                "trace-skia": debugging.trace_skia,
            }
        )
    for name, enabled in flags.items():
        if enabled:
            parts.extend(["--ez", name, "true"])
    if debugging.debugging_enabled and debugging.observatory_port is not None:
        parts.extend(["--ei", "observatory-port", str(debugging.observatory_port)])
    if route:
        parts.extend(["--es", "route", shlex.quote(route)])
    if view_filter:
        parts.extend(["--es", "isolate-filter", shlex.quote(view_filter)])
    parts.extend(["-n", activity])
    return " ".join(parts)
